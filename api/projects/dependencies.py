"""
Dependencies for the project routes.

The service and settings are built once in the app lifespan and kept on
`app.state`; routes pull them from there.
"""

from __future__ import annotations

from fastapi import Request

from core.config import Settings

from .service import ProjectService


def get_project_service(request: Request) -> ProjectService:
    return request.app.state.project_service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
