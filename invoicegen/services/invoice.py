from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import pydantic

from invoicegen.rendering.layout import DocumentRenderer, ImageSource
from invoicegen.rendering.pdf import write_pdf
from invoicegen.schemas.invoice import (
    InvoiceDraft,
    InvoiceListResponse,
    InvoiceRecord,
    InvoiceUpdate,
)
from invoicegen.services.draft import apply_changes, with_totals
from invoicegen.services.exceptions import ServiceError, UnexpectedError
from invoicegen.services.store import InvoiceRepository, get_store
from invoicegen.services.validation import from_pydantic, validate_for_save

logger = logging.getLogger(__name__)

_RECORD_FIELDS = ("id", "created_at", "updated_at")


def _draft_fields(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if key not in _RECORD_FIELDS}


class InvoiceService:
    def __init__(
        self,
        repository: InvoiceRepository | None = None,
        *,
        loader: ImageSource | None = None,
        currency_symbol: str = "Rs.",
        margin: float = 20.0,
    ) -> None:
        self._repository = repository or get_store().invoices
        self._renderer = DocumentRenderer(loader, currency_symbol=currency_symbol, margin=margin)

    async def create(self, draft: InvoiceDraft) -> InvoiceRecord:
        logger.debug("Creating %s %s", draft.document_type, draft.invoice_number)
        try:
            validate_for_save(draft)
            draft = with_totals(draft)
            record = await self._repository.create(draft.model_dump())
            logger.info("Created %s %s as %s", draft.document_type, draft.invoice_number, record["id"])
            return InvoiceRecord.model_validate(record)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while creating invoice")
            raise UnexpectedError("Failed to create invoice", cause=exc)

    async def get(self, invoice_id: str) -> InvoiceRecord:
        try:
            record = await self._repository.get(invoice_id)
            return InvoiceRecord.model_validate(record)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while fetching invoice %s", invoice_id)
            raise UnexpectedError("Failed to fetch invoice", cause=exc)

    async def list(self, document_type: Optional[str] = None) -> InvoiceListResponse:
        logger.debug("Listing invoices (document_type=%s)", document_type)
        try:
            records = await self._repository.list(document_type)
            items = [InvoiceRecord.model_validate(record) for record in records]
            return InvoiceListResponse(total=len(items), items=items)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while listing invoices")
            raise UnexpectedError("Failed to fetch invoices", cause=exc)

    async def update(self, invoice_id: str, changes: InvoiceUpdate) -> InvoiceRecord:
        logger.debug("Updating invoice %s", invoice_id)
        try:
            existing = await self._repository.get(invoice_id)
            current = InvoiceDraft.model_validate(_draft_fields(existing))
            try:
                merged = apply_changes(current, **changes.model_dump(exclude_unset=True))
            except pydantic.ValidationError as exc:
                raise from_pydantic(exc) from exc
            validate_for_save(merged)
            record = await self._repository.update(invoice_id, merged.model_dump())
            return InvoiceRecord.model_validate(record)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while updating invoice %s", invoice_id)
            raise UnexpectedError("Failed to update invoice", cause=exc)

    async def delete(self, invoice_id: str) -> None:
        try:
            await self._repository.delete(invoice_id)
            logger.info("Deleted invoice %s", invoice_id)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while deleting invoice %s", invoice_id)
            raise UnexpectedError("Failed to delete invoice", cause=exc)

    async def render_pdf(self, invoice_id: str) -> Tuple[str, bytes]:
        """Render a stored invoice; returns ``(filename, pdf_bytes)``."""
        invoice = await self.get(invoice_id)
        return await self._render(invoice)

    async def render_draft_pdf(self, draft: InvoiceDraft) -> Tuple[str, bytes]:
        """Render an unsaved draft after bringing its totals up to date."""
        return await self._render(with_totals(draft))

    async def _render(self, invoice: InvoiceDraft) -> Tuple[str, bytes]:
        try:
            document = await self._renderer.render(invoice)
            return document.filename, write_pdf(document, author=invoice.company_name)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while rendering %s", invoice.invoice_number)
            raise UnexpectedError("Failed to generate PDF", cause=exc)
