"""
Cloudinary HTTP client helpers.

Used endpoints:
- POST /v1_1/{cloud_name}/image/upload   -> {"public_id": "...", "secure_url": "..."}
- POST /v1_1/{cloud_name}/image/destroy  -> {"result": "ok" | "not found"}

Both requests are signed with the account's API secret.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import httpx

from .config import DEFAULT_MEDIA_FOLDER, Settings

# Never part of the signature, per Cloudinary's signing rules.
_UNSIGNED_PARAMS = {"file", "api_key", "resource_type", "cloud_name"}


# Media failures are explicit and separable from store errors.
class MediaError(RuntimeError):
    pass


class MediaUploadError(MediaError):
    pass


class MediaDeleteError(MediaError):
    pass


@dataclass(frozen=True)
class MediaAsset:
    url: str
    asset_id: str


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """
    SHA-1 signature over the sorted `key=value` pairs followed by the secret.
    """
    to_sign = "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if key not in _UNSIGNED_PARAMS and params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def normalize_folder(folder: str | None) -> str:
    """
    `"/portfolio//nan_pic/"` -> `"portfolio/nan_pic"`.
    """
    return "/".join(segment for segment in (folder or "").split("/") if segment.strip())


def asset_id_from_url(url: str | None, folder: str = DEFAULT_MEDIA_FOLDER) -> str | None:
    """
    Return the path segment after the last `/<folder>/` with its extension
    removed. `folder` may be nested (`portfolio/nan_pic`).

    `https://res.cloudinary.com/demo/image/upload/v1/nan_pic/xyz123.jpg`
    gives `xyz123`. Anything that doesn't have that shape gives None.
    """
    folder_segments = normalize_folder(folder).split("/")
    if not url or folder_segments == [""]:
        return None
    try:
        path = urlsplit(url.strip()).path
    except ValueError:
        return None

    segments = [segment for segment in path.split("/") if segment]
    size = len(folder_segments)
    # Search from the right: the cloud name or host path may repeat the folder name.
    for start in range(len(segments) - size - 1, -1, -1):
        if segments[start:start + size] == folder_segments:
            asset_id = segments[start + size].split(".", 1)[0]
            return asset_id or None
    return None


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        # Avoid dumping huge bodies; include a small snippet.
        return resp.text[:500]
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return resp.text[:500]


class CloudinaryMediaStore:
    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def folder(self) -> str:
        return normalize_folder(self._settings.media_folder)

    def asset_id_from_url(self, url: str | None) -> str | None:
        return asset_id_from_url(url, self.folder)

    def _credentials(self, error_cls: type[MediaError]) -> tuple[str, str, str]:
        cloud_name = (self._settings.cloudinary_cloud_name or "").strip()
        api_key = (self._settings.cloudinary_api_key or "").strip()
        api_secret = (self._settings.cloudinary_api_secret or "").strip()
        if not (cloud_name and api_key and api_secret):
            raise error_cls("Cloudinary credentials are not configured.")
        return cloud_name, api_key, api_secret

    def _client(self) -> httpx.AsyncClient:
        base_url = (self._settings.cloudinary_api_base_url or "").strip().rstrip("/")
        return httpx.AsyncClient(
            base_url=base_url,
            timeout=self._settings.cloudinary_timeout_s,
            transport=self._transport,
        )

    async def upload(self, data: bytes, mime_type: str, folder: str | None = None) -> MediaAsset:
        """
        Upload one image and return its public URL and asset id.
        """
        cloud_name, api_key, api_secret = self._credentials(MediaUploadError)
        if not data:
            raise MediaUploadError("Refusing to upload an empty file.")

        params: dict[str, Any] = {
            "folder": normalize_folder(folder) or self.folder,
            "timestamp": int(time.time()),
        }
        params["signature"] = sign_params(params, api_secret)
        params["api_key"] = api_key

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"/v1_1/{cloud_name}/image/upload",
                    data={k: str(v) for k, v in params.items()},
                    files={"file": ("upload", data, mime_type or "application/octet-stream")},
                )
        except httpx.HTTPError as exc:
            raise MediaUploadError(f"Cloudinary upload request failed: {exc}") from exc

        if resp.status_code != 200:
            raise MediaUploadError(
                f"Cloudinary upload failed: {resp.status_code} {_error_message(resp)}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise MediaUploadError("Cloudinary returned a non-JSON upload response.") from exc
        if not isinstance(body, dict):
            raise MediaUploadError("Cloudinary returned an unexpected upload response.")

        url = str(body.get("secure_url") or "").strip()
        public_id = str(body.get("public_id") or "").strip()
        if not url or not public_id:
            raise MediaUploadError("Cloudinary returned no secure_url/public_id.")

        return MediaAsset(url=url, asset_id=public_id.rsplit("/", 1)[-1])

    async def delete(self, asset_id: str, folder: str | None = None) -> bool:
        """
        Destroy `<folder>/<asset_id>`. An asset that is already gone counts
        as deleted.
        """
        cloud_name, api_key, api_secret = self._credentials(MediaDeleteError)
        asset_id = (asset_id or "").strip()
        if not asset_id:
            raise MediaDeleteError("Asset id is empty.")

        params: dict[str, Any] = {
            "public_id": f"{normalize_folder(folder) or self.folder}/{asset_id}",
            "timestamp": int(time.time()),
        }
        params["signature"] = sign_params(params, api_secret)
        params["api_key"] = api_key

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"/v1_1/{cloud_name}/image/destroy",
                    data={k: str(v) for k, v in params.items()},
                )
        except httpx.HTTPError as exc:
            raise MediaDeleteError(f"Cloudinary destroy request failed: {exc}") from exc

        if resp.status_code == 404:
            return True
        if resp.status_code != 200:
            raise MediaDeleteError(
                f"Cloudinary destroy failed: {resp.status_code} {_error_message(resp)}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise MediaDeleteError("Cloudinary returned a non-JSON destroy response.") from exc
        if not isinstance(body, dict):
            raise MediaDeleteError("Cloudinary returned an unexpected destroy response.")

        result = str(body.get("result") or "").strip().lower()
        if result in ("ok", "not found"):
            return True
        raise MediaDeleteError(f"Cloudinary destroy returned unexpected result: {result!r}")
