import asyncio
import base64

import httpx
import pytest

from invoicegen.clients.assets import AssetLoader
from invoicegen.rendering.layout import render
from invoicegen.schemas.invoice import InvoiceDraft
from invoicegen.services.exceptions import AssetLoadError


def _load(loader: AssetLoader, reference: str) -> bytes:
    async def run() -> bytes:
        try:
            return await loader.load(reference)
        finally:
            await loader.close()

    return asyncio.run(run())


def test_decodes_base64_data_uri(tmp_path) -> None:
    payload = base64.b64encode(b"image-bytes").decode()

    data = _load(AssetLoader(tmp_path), f"data:image/png;base64,{payload}")

    assert data == b"image-bytes"


@pytest.mark.parametrize(
    "reference",
    ["data:image/png,plain", "data:image/png;base64,***", "   "],
)
def test_rejects_unusable_references(tmp_path, reference) -> None:
    with pytest.raises(AssetLoadError):
        _load(AssetLoader(tmp_path), reference)


def test_reads_uploaded_file(tmp_path) -> None:
    (tmp_path / "logo-1.png").write_bytes(b"local")
    loader = AssetLoader(tmp_path)

    assert _load(loader, "/uploads/logo-1.png") == b"local"
    assert _load(loader, "logo-1.png") == b"local"


def test_missing_upload_is_asset_error(tmp_path) -> None:
    with pytest.raises(AssetLoadError):
        _load(AssetLoader(tmp_path), "/uploads/nope.png")


def test_refuses_paths_outside_upload_dir(tmp_path) -> None:
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    (tmp_path / "secret.txt").write_text("secret")

    with pytest.raises(AssetLoadError) as excinfo:
        _load(AssetLoader(uploads), "/uploads/../secret.txt")

    assert "escapes" in excinfo.value.message


def test_fetches_remote_asset() -> None:
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=b"remote")

    loader = AssetLoader("uploads", transport=httpx.MockTransport(handler))

    assert _load(loader, "https://cdn.example.com/logo.png") == b"remote"
    assert requested == ["https://cdn.example.com/logo.png"]


def test_remote_error_status_is_asset_error() -> None:
    loader = AssetLoader(
        "uploads", transport=httpx.MockTransport(lambda request: httpx.Response(404))
    )

    with pytest.raises(AssetLoadError) as excinfo:
        _load(loader, "https://cdn.example.com/missing.png")

    assert excinfo.value.reference == "https://cdn.example.com/missing.png"
    assert isinstance(excinfo.value.cause, httpx.HTTPStatusError)


def test_remote_connection_failure_is_asset_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    loader = AssetLoader("uploads", transport=httpx.MockTransport(handler))

    with pytest.raises(AssetLoadError):
        _load(loader, "http://cdn.example.com/logo.png")


def test_null_byte_in_path_is_asset_error(tmp_path) -> None:
    with pytest.raises(AssetLoadError):
        _load(AssetLoader(tmp_path), "/uploads/a\x00b.png")


def test_render_survives_unreadable_logo_path(tmp_path) -> None:
    invoice = InvoiceDraft(company_name="Acme", company_logo="/uploads/a\x00b.png")
    loader = AssetLoader(tmp_path)

    document = asyncio.run(render(invoice, loader))

    assert document.images() == []
    assert "Acme" in document.texts()
