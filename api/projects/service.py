"""
Project orchestration across the media host and the database.

There is no shared transaction between the two, so ordering is the whole
consistency story:
1) create/update: upload the image first, then write the row that points at it
2) delete: remove the row first, then the image

The one window we accept is "upload succeeded, row write failed": the new
asset is left orphaned (logged with its id), no compensating delete is tried.
Deleting a stale asset is best-effort everywhere; a failure is logged and the
request still succeeds.
"""

from __future__ import annotations

import logging
from typing import Protocol

from core.db import StoreError
from core.media import MediaAsset, MediaDeleteError

from .errors import NotFoundError, ValidationError
from .schemas import ImageUpload

logger = logging.getLogger(__name__)


class MediaStore(Protocol):
    folder: str

    async def upload(self, data: bytes, mime_type: str, folder: str | None = None) -> MediaAsset: ...

    async def delete(self, asset_id: str, folder: str | None = None) -> bool: ...

    def asset_id_from_url(self, url: str | None) -> str | None: ...


class Repository(Protocol):
    async def list_all(self) -> list[dict]: ...

    async def insert(self, *, title: str, description: str, image_url: str) -> dict: ...

    async def update_by_id(
        self, project_id: int, *, title: str, description: str, image_url: str
    ) -> dict | None: ...

    async def get_image_url_by_id(self, project_id: int) -> str | None: ...

    async def delete_by_id(self, project_id: int) -> bool: ...


def _summary(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "title": str(row["title"]),
        "image_url": row.get("image_url"),
    }


def _clean(value: str | None) -> str:
    return (value or "").strip()


class ProjectService:
    def __init__(self, repository: Repository, media: MediaStore) -> None:
        self._repository = repository
        self._media = media

    async def list_projects(self) -> list[dict]:
        rows = await self._repository.list_all()
        return [
            {
                "id": int(row["id"]),
                "title": row["title"],
                "description": row["description"],
                "image_url": row["image_url"],
            }
            for row in rows
        ]

    async def create(
        self,
        *,
        title: str | None,
        description: str | None,
        image: ImageUpload | None,
    ) -> dict:
        title, description = _clean(title), _clean(description)
        if not title or not description or image is None or not image.data:
            raise ValidationError("Title, description, and image are required.")

        asset = await self._media.upload(image.data, image.content_type, self._media.folder)

        try:
            row = await self._repository.insert(
                title=title,
                description=description,
                image_url=asset.url,
            )
        except StoreError:
            logger.warning(
                "orphaned_asset reason=insert_failed asset_id=%s url=%s",
                asset.asset_id,
                asset.url,
            )
            raise

        logger.info("project_created project_id=%s asset_id=%s", row["id"], asset.asset_id)
        return _summary(row)

    async def update(
        self,
        project_id: int,
        *,
        title: str | None,
        description: str | None,
        image: ImageUpload | None = None,
        existing_image_url: str | None = None,
    ) -> dict:
        title, description = _clean(title), _clean(description)
        existing_image_url = _clean(existing_image_url)
        if not title or not description:
            raise ValidationError("Title and description are required.")

        has_new_image = image is not None and bool(image.data)
        if not has_new_image and not existing_image_url:
            # We never read before writing, so a missing URL would wipe the stored one.
            raise ValidationError("existing_image_url is required when no new image is uploaded.")

        image_url = existing_image_url
        asset: MediaAsset | None = None
        if has_new_image:
            await self._delete_asset_quietly(existing_image_url, project_id=project_id)
            asset = await self._media.upload(image.data, image.content_type, self._media.folder)
            image_url = asset.url

        try:
            row = await self._repository.update_by_id(
                project_id,
                title=title,
                description=description,
                image_url=image_url,
            )
        except StoreError:
            if asset is not None:
                logger.warning(
                    "orphaned_asset reason=update_failed project_id=%s asset_id=%s",
                    project_id,
                    asset.asset_id,
                )
            raise

        if row is None:
            if asset is not None:
                logger.warning(
                    "orphaned_asset reason=project_missing project_id=%s asset_id=%s",
                    project_id,
                    asset.asset_id,
                )
            raise NotFoundError("Project not found.")

        logger.info("project_updated project_id=%s image_replaced=%s", project_id, has_new_image)
        return _summary(row)

    async def delete(self, project_id: int) -> None:
        image_url = await self._repository.get_image_url_by_id(project_id)
        if image_url is None:
            raise NotFoundError("Project not found.")

        # Row goes first; a StoreError here leaves the image alongside its row.
        if not await self._repository.delete_by_id(project_id):
            raise NotFoundError("Project not found.")

        if image_url:
            await self._delete_asset_quietly(image_url, project_id=project_id)

        logger.info("project_deleted project_id=%s", project_id)

    async def _delete_asset_quietly(self, image_url: str, *, project_id: int) -> None:
        if not image_url:
            return None

        asset_id = self._media.asset_id_from_url(image_url)
        if asset_id is None:
            logger.warning(
                "asset_id_unresolved project_id=%s image_url=%s",
                project_id,
                image_url,
            )
            return None

        try:
            await self._media.delete(asset_id, self._media.folder)
        except MediaDeleteError:
            logger.warning(
                "asset_delete_failed project_id=%s asset_id=%s",
                project_id,
                asset_id,
                exc_info=True,
            )
