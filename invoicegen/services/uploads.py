from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from invoicegen.clients.assets import UPLOADS_PREFIX
from invoicegen.services.exceptions import UnexpectedError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".svg"}
ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/svg+xml",
}
UPLOAD_KINDS = ("logo", "qrcode")


@dataclass(frozen=True)
class UploadResult:
    file_path: str
    original_name: str


class UploadService:
    """Stores logo and QR image blobs and returns a reference to them."""

    def __init__(self, upload_dir: Path | str, *, max_bytes: int = 2 * 1024 * 1024) -> None:
        self._upload_dir = Path(upload_dir)
        self._max_bytes = max_bytes

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def _check(self, kind: str, filename: str, content_type: str | None, data: bytes) -> str:
        if kind not in UPLOAD_KINDS:
            raise ValidationError.for_field("kind", f"Unsupported upload kind: {kind}")
        if not data:
            raise ValidationError.for_field(kind, "No file uploaded")
        if len(data) > self._max_bytes:
            raise ValidationError.for_field(
                kind, f"File exceeds the {self._max_bytes // 1024} KB limit"
            )
        extension = Path(filename or "").suffix.lower()
        if extension not in ALLOWED_EXTENSIONS or (
            content_type and content_type.lower() not in ALLOWED_CONTENT_TYPES
        ):
            raise ValidationError.for_field(kind, "Only image files are allowed!")
        return extension

    async def store(
        self,
        kind: str,
        filename: str,
        content_type: str | None,
        data: bytes,
    ) -> UploadResult:
        extension = self._check(kind, filename, content_type, data)
        name = f"{kind}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"
        target = self._upload_dir / name
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as exc:
            logger.exception("Unable to store upload %s", target)
            raise UnexpectedError("Failed to upload file", cause=exc) from exc
        logger.info("Stored %s upload %r as %s", kind, filename, name)
        return UploadResult(file_path=f"{UPLOADS_PREFIX}{name}", original_name=filename)

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
