"""
Process configuration.

`load_settings()` is called once at startup (see `api/main.py`) and the
resulting `Settings` value is passed into the pieces that need it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_MEDIA_FOLDER = "nan_pic"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB
DEFAULT_CORS_ORIGINS = (
    "http://localhost:8080",
    "http://127.0.0.1:5500",
    "http://localhost:3000",
)


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_command_timeout_s: float = 30.0

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = field(default="", repr=False)
    cloudinary_api_base_url: str = "https://api.cloudinary.com"
    cloudinary_timeout_s: float = 60.0
    media_folder: str = DEFAULT_MEDIA_FOLDER

    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"
    port: int = 3000


def load_settings() -> Settings:
    """
    Build settings from the environment (and a local `.env`, if present).

    Missing credentials are not an error here; the database and media clients
    report them when they are first used.
    """
    load_dotenv()

    max_upload_bytes = _env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    if max_upload_bytes <= 0:
        max_upload_bytes = DEFAULT_MAX_UPLOAD_BYTES

    return Settings(
        database_url=_env_str("DATABASE_URL"),
        db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
        db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
        db_command_timeout_s=_env_float("DB_COMMAND_TIMEOUT_S", 30.0),
        cloudinary_cloud_name=_env_str("CLOUDINARY_CLOUD_NAME"),
        cloudinary_api_key=_env_str("CLOUDINARY_API_KEY"),
        cloudinary_api_secret=_env_str("CLOUDINARY_API_SECRET"),
        cloudinary_api_base_url=_env_str("CLOUDINARY_API_BASE_URL", "https://api.cloudinary.com"),
        cloudinary_timeout_s=_env_float("CLOUDINARY_TIMEOUT_S", 60.0),
        media_folder=_env_str("MEDIA_FOLDER", DEFAULT_MEDIA_FOLDER),
        max_upload_bytes=max_upload_bytes,
        cors_origins=_env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        port=_env_int("PORT", 3000),
    )
