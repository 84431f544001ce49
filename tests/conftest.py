from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.db import StoreError
from core.media import MediaAsset, MediaDeleteError, MediaUploadError, asset_id_from_url
from projects.schemas import ImageUpload
from projects.service import ProjectService


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeMediaStore:
    """Records every call; failures are switched on per test."""

    folder = "nan_pic"

    def __init__(self, events: list[tuple] | None = None) -> None:
        self.calls = events if events is not None else []
        self.uploads = 0
        self.fail_upload = False
        self.fail_delete = False

    async def upload(self, data: bytes, mime_type: str, folder: str | None = None) -> MediaAsset:
        self.calls.append(("upload", len(data), mime_type, folder))
        if self.fail_upload:
            raise MediaUploadError("quota exceeded")
        self.uploads += 1
        asset_id = f"asset{self.uploads}"
        return MediaAsset(url=f"https://host/{self.folder}/{asset_id}.jpg", asset_id=asset_id)

    async def delete(self, asset_id: str, folder: str | None = None) -> bool:
        self.calls.append(("delete", asset_id, folder))
        if self.fail_delete:
            raise MediaDeleteError("boom")
        return True

    def asset_id_from_url(self, url: str | None) -> str | None:
        return asset_id_from_url(url, self.folder)


class FakeRepository:
    """In-memory `projects` table."""

    def __init__(self, events: list[tuple] | None = None) -> None:
        self.rows: dict[int, dict] = {}
        self.next_id = 1
        self.events = events if events is not None else []
        self.fail_insert = False
        self.fail_update = False
        self.fail_delete = False

    def seed(self, title: str, description: str, image_url: str | None) -> int:
        project_id = self.next_id
        self.next_id += 1
        self.rows[project_id] = {
            "id": project_id,
            "title": title,
            "description": description,
            "image_url": image_url,
            "created_at": datetime.now(timezone.utc),
        }
        return project_id

    async def list_all(self) -> list[dict]:
        return sorted(self.rows.values(), key=lambda r: r["created_at"], reverse=True)

    async def insert(self, *, title: str, description: str, image_url: str) -> dict:
        self.events.append(("insert", image_url))
        if self.fail_insert:
            raise StoreError("connection reset")
        project_id = self.seed(title, description, image_url)
        return dict(self.rows[project_id])

    async def update_by_id(self, project_id: int, *, title: str, description: str, image_url: str) -> dict | None:
        self.events.append(("update", project_id, image_url))
        if self.fail_update:
            raise StoreError("connection reset")
        row = self.rows.get(project_id)
        if row is None:
            return None
        row.update(title=title, description=description, image_url=image_url)
        return dict(row)

    async def get_image_url_by_id(self, project_id: int) -> str | None:
        row = self.rows.get(project_id)
        if row is None:
            return None
        return row["image_url"] or ""

    async def delete_by_id(self, project_id: int) -> bool:
        self.events.append(("delete_row", project_id))
        if self.fail_delete:
            raise StoreError("connection reset")
        return self.rows.pop(project_id, None) is not None


@pytest.fixture
def events() -> list[tuple]:
    """Shared call log so tests can assert ordering across both fakes."""
    return []


@pytest.fixture
def media(events: list[tuple]) -> FakeMediaStore:
    return FakeMediaStore(events)


@pytest.fixture
def repository(events: list[tuple]) -> FakeRepository:
    return FakeRepository(events)


@pytest.fixture
def service(repository: FakeRepository, media: FakeMediaStore) -> ProjectService:
    return ProjectService(repository, media)


@pytest.fixture
def image() -> ImageUpload:
    return ImageUpload(data=b"\x89PNG fake", content_type="image/png", filename="shot.png")
