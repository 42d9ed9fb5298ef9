from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from invoicegen.dependencies.services import get_invoice_service
from invoicegen.routes.errors import to_http_exception
from invoicegen.schemas.invoice import (
    DocumentType,
    InvoiceDraft,
    InvoiceListResponse,
    InvoiceRecord,
    InvoiceUpdate,
    MessageResponse,
)
from invoicegen.services import InvoiceService
from invoicegen.services.exceptions import ServiceError

router = APIRouter()


def _pdf_response(filename: str, content: bytes) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    document_type: Optional[DocumentType] = Query(default=None, alias="documentType"),
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.list(document_type)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=InvoiceRecord, status_code=201)
async def create_invoice(
    req: InvoiceDraft,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.create(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("/preview/pdf")
async def preview_invoice_pdf(
    req: InvoiceDraft,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        filename, content = await service.render_draft_pdf(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return _pdf_response(filename, content)


@router.get("/{invoice_id}", response_model=InvoiceRecord)
async def get_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.get(invoice_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{invoice_id}", response_model=InvoiceRecord)
async def update_invoice(
    invoice_id: str,
    req: InvoiceUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return await service.update(invoice_id, req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        await service.delete(invoice_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return MessageResponse(message="Invoice deleted successfully")


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        filename, content = await service.render_pdf(invoice_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return _pdf_response(filename, content)
