"""
Local photo storage for submission uploads.

Files land in ``settings.upload_dir`` under a timestamped, sanitized name plus a
random token and are served from ``settings.upload_url_prefix``. Existing
files are never overwritten.
"""

from __future__ import annotations

import asyncio
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

import structlog

from app.core.config import Settings, get_settings
from app.core.errors import ValidationError

log = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class Upload(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class StoredPhoto:
    url: str
    path: Path
    metadata: dict[str, Any]


def safe_filename(name: Optional[str]) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", Path(name or "photo").name).strip("._")
    return cleaned or "photo"


class PhotoStorage:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.root = Path(self.settings.upload_dir)

    def validate(self, content_type: Optional[str], size: int) -> None:
        if content_type not in self.settings.allowed_photo_types:
            raise ValidationError(
                "Only JPEG and PNG images are allowed",
                content_type=content_type,
                allowed=self.settings.allowed_photo_types,
            )
        if size > self.settings.max_upload_bytes:
            raise ValidationError(
                "Photo exceeds the maximum upload size",
                size=size,
                max_bytes=self.settings.max_upload_bytes,
            )
        if size == 0:
            raise ValidationError("Photo is empty")

    async def read_upload(self, upload: Upload) -> bytes:
        """Read an upload body, never more than one byte past ``max_upload_bytes``."""
        limit = self.settings.max_upload_bytes
        data = await upload.read(limit + 1)
        if len(data) > limit:
            raise ValidationError(
                "Photo exceeds the maximum upload size",
                size=len(data),
                max_bytes=limit,
            )
        return data

    async def save(self, data: bytes, filename: Optional[str], content_type: Optional[str]) -> StoredPhoto:
        self.validate(content_type, len(data))

        name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_filename(filename)}"
        path = self.root / name
        await asyncio.to_thread(self._write, path, data)
        log.info("photo.stored", path=str(path), size=len(data))

        return StoredPhoto(
            url=f"{self.settings.upload_url_prefix.rstrip('/')}/{name}",
            path=path,
            metadata={
                "originalName": filename,
                "mimeType": content_type,
                "size": len(data),
            },
        )

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("xb") as fh:
            fh.write(data)

    async def delete(self, path: Path) -> None:
        await asyncio.to_thread(path.unlink, True)
