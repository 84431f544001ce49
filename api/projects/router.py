"""
Project API endpoints.

Public:
- GET /api/projects

Admin (unauthenticated, as in the site this backs):
- POST   /api/admin/projects
- PUT    /api/admin/projects/{project_id}
- DELETE /api/admin/projects/{project_id}
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, Request, UploadFile, status

from core.config import Settings
from core.db import StoreError
from core.media import MediaError

from . import schemas
from .dependencies import get_project_service, get_settings
from .errors import NotFoundError, ValidationError
from .service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter()

# `projects.id` is a SERIAL (int4) column.
MAX_PROJECT_ID = 2**31 - 1


@contextmanager
def _service_errors(failure_detail: str, **context: Any) -> Iterator[None]:
    """
    Map project errors to status codes; dependency failures become a generic 500.
    """
    try:
        yield
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (StoreError, MediaError) as exc:
        logger.exception(
            "project_request_failed %s",
            " ".join(f"{k}={v}" for k, v in context.items()),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=failure_detail,
        ) from exc


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


async def _read_image(file: UploadFile | None, *, max_bytes: int) -> schemas.ImageUpload | None:
    # Browsers send an empty part when no file was chosen.
    if file is None:
        return None
    data = await read_upload_bytes(file, max_bytes=max_bytes)
    if not data:
        return None
    return schemas.ImageUpload(
        data=data,
        content_type=file.content_type or "application/octet-stream",
        filename=file.filename or "",
    )


async def _form_field_names(request: Request) -> list[str]:
    # FastAPI has already parsed the body; this returns the cached form.
    form = await request.form()
    return list(form.keys())


def _present(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@router.get("/api/projects")
async def list_projects(
    service: ProjectService = Depends(get_project_service),
) -> list[dict]:
    """
    List every project, newest first.
    """
    with _service_errors("Failed to retrieve project data.", route="list"):
        return await service.list_projects()


@router.post("/api/admin/projects", status_code=status.HTTP_201_CREATED)
async def create_project(
    request: Request,
    title: str | None = Form(None),
    description: str | None = Form(None),
    image: UploadFile | None = File(None),
    service: ProjectService = Depends(get_project_service),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Upload the image, then store a new project pointing at it.
    """
    with _service_errors("Failed to create project.", route="create"):
        schemas.reject_unknown_fields(await _form_field_names(request), schemas.ProjectCreate)
        payload = schemas.build_create(
            _present(
                title=title,
                description=description,
                image=await _read_image(image, max_bytes=settings.max_upload_bytes),
            )
        )
        project = await service.create(
            title=payload.title,
            description=payload.description,
            image=payload.image,
        )
    return {"message": "Project created successfully", "project": project}


@router.put("/api/admin/projects/{project_id}")
async def update_project(
    request: Request,
    project_id: int = Path(..., ge=1, le=MAX_PROJECT_ID),
    title: str | None = Form(None),
    description: str | None = Form(None),
    existing_image_url: str | None = Form(None),
    image: UploadFile | None = File(None),
    service: ProjectService = Depends(get_project_service),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Update a project's text, optionally replacing its image.
    """
    with _service_errors("Failed to update project.", route="update", project_id=project_id):
        schemas.reject_unknown_fields(await _form_field_names(request), schemas.ProjectUpdate)
        payload = schemas.build_update(
            _present(
                title=title,
                description=description,
                existing_image_url=existing_image_url,
                image=await _read_image(image, max_bytes=settings.max_upload_bytes),
            )
        )
        project = await service.update(
            project_id,
            title=payload.title,
            description=payload.description,
            image=payload.image,
            existing_image_url=payload.existing_image_url,
        )
    return {"message": "Project updated successfully", "project": project}


@router.delete("/api/admin/projects/{project_id}")
async def delete_project(
    project_id: int = Path(..., ge=1, le=MAX_PROJECT_ID),
    service: ProjectService = Depends(get_project_service),
) -> dict:
    """
    Delete a project row, then its image.
    """
    with _service_errors("Failed to delete project.", route="delete", project_id=project_id):
        await service.delete(project_id)
    return {"message": "Project deleted successfully"}
