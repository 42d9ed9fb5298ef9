import asyncio

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from invoicegen.dependencies.services import get_upload_service
from invoicegen.main import app
from invoicegen.routes.uploads import _store
from invoicegen.services.store import reset_store
from invoicegen.services.uploads import UploadService


@pytest.fixture(autouse=True)
def _reset_store() -> None:
    reset_store()
    yield
    reset_store()


@pytest.fixture
def client(tmp_path):
    app.dependency_overrides[get_upload_service] = lambda: UploadService(tmp_path, max_bytes=1024)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _payload(**overrides):
    payload = {
        "documentType": "invoice",
        "invoiceNumber": "INV-1001",
        "issueDate": "2024-05-01",
        "dueDate": "2024-05-31",
        "companyName": "Acme Studio",
        "companyEmail": "billing@example.com",
        "clientName": "Globex",
        "items": [
            {"title": "Design", "description": "Landing page", "quantity": 2, "amount": "500.00"},
            {"title": "Hosting", "quantity": 1, "amount": 120.5},
        ],
        "taxRate": "10",
        "discountAmount": "50",
        "upiId": "acme@upi",
    }
    payload.update(overrides)
    return payload


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "invoices": 0, "templates": 0}


def test_create_and_fetch_invoice(client) -> None:
    response = client.post("/api/invoices", json=_payload(total="1"))

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "INV-00001"
    assert body["invoiceNumber"] == "INV-1001"
    assert body["subtotal"] == "1120.50"
    assert body["taxAmount"] == "112.05"
    assert body["total"] == "1182.55"
    assert body["createdAt"]

    fetched = client.get(f"/api/invoices/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == body


def test_create_invalid_invoice_returns_field_errors(client) -> None:
    response = client.post(
        "/api/invoices",
        json=_payload(companyName="", companyEmail="nope", items=[]),
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Validation error"
    fields = {error["field"] for error in detail["errors"]}
    assert fields == {"companyName", "companyEmail", "items"}


def test_duplicate_invoice_number_is_rejected(client) -> None:
    assert client.post("/api/invoices", json=_payload()).status_code == 201

    response = client.post("/api/invoices", json=_payload())

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Invoice number already exists"


def test_malformed_body_is_unprocessable(client) -> None:
    response = client.post("/api/invoices", json=_payload(taxRate="500"))

    assert response.status_code == 422


def test_list_filters_by_document_type(client) -> None:
    client.post("/api/invoices", json=_payload())
    client.post(
        "/api/invoices",
        json=_payload(invoiceNumber="EST-1", documentType="estimate"),
    )

    everything = client.get("/api/invoices").json()
    estimates = client.get("/api/invoices", params={"documentType": "estimate"}).json()

    assert everything["total"] == 2
    assert estimates["total"] == 1
    assert estimates["items"][0]["invoiceNumber"] == "EST-1"


def test_update_and_delete_invoice(client) -> None:
    created = client.post("/api/invoices", json=_payload()).json()

    response = client.put(
        f"/api/invoices/{created['id']}",
        json={"discountAmount": "0", "notes": "Paid in full"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["notes"] == "Paid in full"
    assert body["total"] == "1232.55"
    assert body["createdAt"] == created["createdAt"]

    deleted = client.delete(f"/api/invoices/{created['id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Invoice deleted successfully"}

    missing = client.get(f"/api/invoices/{created['id']}")
    assert missing.status_code == 404
    assert missing.json()["detail"]["message"] == "Invoice not found"


def test_unknown_invoice_returns_404(client) -> None:
    assert client.put("/api/invoices/INV-404", json={"notes": "x"}).status_code == 404
    assert client.delete("/api/invoices/INV-404").status_code == 404
    assert client.get("/api/invoices/INV-404/pdf").status_code == 404


def test_download_pdf(client) -> None:
    created = client.post("/api/invoices", json=_payload()).json()

    response = client.get(f"/api/invoices/{created['id']}/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="INV-1001.pdf"'
    assert response.content.startswith(b"%PDF")


def test_preview_pdf_for_unsaved_draft(client) -> None:
    response = client.post("/api/invoices/preview/pdf", json={"items": []})

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="draft.pdf"'
    assert response.content.startswith(b"%PDF")
    assert client.get("/api/invoices").json()["total"] == 0


def test_preview_pdf_skips_unreachable_logo(client) -> None:
    response = client.post(
        "/api/invoices/preview/pdf",
        json=_payload(companyLogo="/uploads/does-not-exist.png"),
    )

    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


def test_totals_endpoint(client) -> None:
    response = client.post(
        "/api/totals",
        json={
            "items": [
                {"title": "Design", "quantity": 2, "amount": "500.00"},
                {"title": "Hosting", "quantity": 1, "amount": "120.50"},
            ],
            "taxRate": "10",
            "discountAmount": 50,
        },
    )

    assert response.status_code == 200
    assert response.json() == {"subtotal": "1120.50", "taxAmount": "112.05", "total": "1182.55"}


def test_totals_endpoint_treats_garbage_as_zero(client) -> None:
    response = client.post(
        "/api/totals",
        json={"items": [{"title": "A", "amount": "10"}], "taxRate": "abc", "discountAmount": ""},
    )

    assert response.json()["total"] == "10.00"


def test_template_endpoints(client) -> None:
    created = client.post(
        "/api/templates",
        json={"name": "Monthly", "templateData": _payload(invoiceNumber="", taxRate="18")},
    )
    assert created.status_code == 201
    template = created.json()
    assert template["templateData"]["companyName"] == "Acme Studio"

    listing = client.get("/api/templates").json()
    assert listing["total"] == 1
    assert listing["items"][0]["name"] == "Monthly"

    applied = client.post(f"/api/templates/{template['id']}/apply")
    assert applied.status_code == 200
    draft = applied.json()
    assert draft["companyName"] == "Acme Studio"
    assert draft["invoiceNumber"].startswith("INV-")
    assert draft["taxAmount"] == "201.69"
    assert draft["total"] == "1272.19"

    deleted = client.delete(f"/api/templates/{template['id']}")
    assert deleted.json() == {"message": "Template deleted successfully"}
    assert client.get(f"/api/templates/{template['id']}").status_code == 404
    assert client.post(f"/api/templates/{template['id']}/apply").status_code == 404


def test_upload_logo_and_qrcode(client, tmp_path) -> None:
    logo = client.post("/api/upload/logo", files={"logo": ("brand.png", b"\x89PNG", "image/png")})
    qrcode = client.post("/api/upload/qrcode", files={"qrcode": ("qr.jpg", b"\xff\xd8", "image/jpeg")})

    assert logo.status_code == 200
    assert logo.json()["originalName"] == "brand.png"
    assert logo.json()["filePath"].startswith("/uploads/logo-")
    assert qrcode.json()["filePath"].startswith("/uploads/qrcode-")
    assert len(list(tmp_path.iterdir())) == 2


def test_upload_rejects_non_images(client) -> None:
    response = client.post(
        "/api/upload/logo", files={"logo": ("notes.txt", b"hello", "text/plain")}
    )

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Only image files are allowed!"


def test_upload_rejects_oversized_files(client) -> None:
    response = client.post(
        "/api/upload/qrcode", files={"qrcode": ("qr.png", b"x" * 4096, "image/png")}
    )

    assert response.status_code == 400


class RecordingUpload:
    def __init__(self, data: bytes) -> None:
        self.filename = "qr.png"
        self.content_type = "image/png"
        self._data = data
        self.read_sizes = []

    async def read(self, size: int = -1) -> bytes:
        self.read_sizes.append(size)
        return self._data if size < 0 else self._data[:size]


def test_upload_reads_no_more_than_limit(tmp_path) -> None:
    upload = RecordingUpload(b"x" * 10_000)
    service = UploadService(tmp_path, max_bytes=1024)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(_store("qrcode", upload, service))

    assert upload.read_sizes == [1025]
    assert excinfo.value.status_code == 400
    assert list(tmp_path.iterdir()) == []
