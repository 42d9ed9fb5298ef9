from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from pathlib import Path
from typing import Optional

import httpx

from invoicegen.services.exceptions import AssetLoadError

logger = logging.getLogger(__name__)

UPLOADS_PREFIX = "/uploads/"


class AssetLoader:
    """Resolves stored logo/QR references to raw image bytes.

    References are whatever the upload service handed out: ``data:`` URIs,
    ``/uploads/<name>`` paths under ``upload_dir``, or ``http(s)`` URLs.
    """

    def __init__(
        self,
        upload_dir: Path | str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._upload_dir = Path(upload_dir)
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def load(self, reference: str) -> bytes:
        reference = (reference or "").strip()
        if not reference:
            raise AssetLoadError("Empty asset reference")
        if reference.startswith("data:"):
            return self._decode_data_uri(reference)
        if reference.startswith(("http://", "https://")):
            return await self._fetch(reference)
        return await self._read_local(reference)

    @staticmethod
    def _decode_data_uri(reference: str) -> bytes:
        header, sep, payload = reference.partition(",")
        if not sep or ";base64" not in header:
            raise AssetLoadError("Only base64 data URIs are supported", reference[:32])
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AssetLoadError("Malformed data URI", reference[:32], cause=exc) from exc

    async def _fetch(self, url: str) -> bytes:
        client = await self._ensure_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.content
        except httpx.HTTPStatusError as exc:
            logger.warning("Asset %s returned %s", url, exc.response.status_code)
            raise AssetLoadError("Asset returned an error response", url, cause=exc) from exc
        except httpx.RequestError as exc:
            logger.warning("Unable to fetch asset %s: %s", url, exc)
            raise AssetLoadError("Unable to fetch asset", url, cause=exc) from exc

    def _resolve_local(self, reference: str) -> Path:
        name = reference[len(UPLOADS_PREFIX):] if reference.startswith(UPLOADS_PREFIX) else reference
        try:
            base = self._upload_dir.resolve()
            path = (base / name).resolve()
        except (ValueError, OSError) as exc:
            raise AssetLoadError("Invalid asset path", reference, cause=exc) from exc
        if base not in path.parents:
            raise AssetLoadError("Asset path escapes the upload directory", reference)
        return path

    async def _read_local(self, reference: str) -> bytes:
        path = self._resolve_local(reference)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            logger.warning("Unable to read asset %s: %s", path, exc)
            raise AssetLoadError("Unable to read asset", reference, cause=exc) from exc
