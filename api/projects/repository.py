"""
Project persistence (raw SQL).

Every operation is a single statement; values are always bound parameters.
"""

from __future__ import annotations

from core.db import Database, StoreError


class ProjectRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def list_all(self) -> list[dict]:
        return await self._db.fetch_all(
            """
            SELECT id, title, description, image_url
            FROM projects
            ORDER BY created_at DESC
            """
        )

    async def insert(self, *, title: str, description: str, image_url: str) -> dict:
        row = await self._db.fetch_one(
            """
            INSERT INTO projects (title, description, image_url, created_at)
            VALUES ($1, $2, $3, now())
            RETURNING id, title, description, image_url, created_at
            """,
            title,
            description,
            image_url,
        )
        if row is None:
            raise StoreError("Failed to insert project.")
        return row

    async def update_by_id(
        self,
        project_id: int,
        *,
        title: str,
        description: str,
        image_url: str,
    ) -> dict | None:
        return await self._db.fetch_one(
            """
            UPDATE projects
            SET title = $2,
                description = $3,
                image_url = $4
            WHERE id = $1
            RETURNING id, title, description, image_url, created_at
            """,
            project_id,
            title,
            description,
            image_url,
        )

    async def get_image_url_by_id(self, project_id: int) -> str | None:
        """
        None means "no such row"; a row without an image gives "".
        """
        row = await self._db.fetch_one(
            """
            SELECT COALESCE(image_url, '') AS image_url
            FROM projects
            WHERE id = $1
            """,
            project_id,
        )
        if row is None:
            return None
        return str(row["image_url"])

    async def delete_by_id(self, project_id: int) -> bool:
        row = await self._db.fetch_one(
            """
            DELETE FROM projects
            WHERE id = $1
            RETURNING id
            """,
            project_id,
        )
        return row is not None
