"""
Pydantic input structs for the admin project endpoints.

They are built once from the form fields at the HTTP boundary; unknown
field names are rejected here, before the service sees anything.
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

CREATE_REQUIRED_MESSAGE = "Title, description, and image are required."
UPDATE_REQUIRED_MESSAGE = "Title and description are required."


class ImageUpload(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    data: bytes = Field(..., min_length=1)
    content_type: str = "application/octet-stream"
    filename: str = ""


class ProjectCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    image: ImageUpload


class ProjectUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    image: ImageUpload | None = None
    existing_image_url: str | None = None


def reject_unknown_fields(names: Iterable[str], model: type[BaseModel]) -> None:
    unexpected = sorted(set(names) - set(model.model_fields))
    if unexpected:
        raise ValidationError(f"Unexpected form field(s): {', '.join(unexpected)}.")


def _build(model: type[BaseModel], values: dict[str, Any], message: str) -> Any:
    reject_unknown_fields(values, model)
    try:
        return model(**values)
    except PydanticValidationError as exc:
        raise ValidationError(message) from exc


def build_create(values: dict[str, Any]) -> ProjectCreate:
    return _build(ProjectCreate, values, CREATE_REQUIRED_MESSAGE)


def build_update(values: dict[str, Any]) -> ProjectUpdate:
    return _build(ProjectUpdate, values, UPDATE_REQUIRED_MESSAGE)
