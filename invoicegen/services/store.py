from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from invoicegen.services.exceptions import NotFoundError, ValidationError


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter):05d}"


class InvoiceRepository(_BaseRepository):
    """Invoice and estimate documents keyed by an opaque id."""

    def __init__(self) -> None:
        super().__init__("INV")
        self._invoices: Dict[str, Dict[str, Any]] = {}

    def _find_by_number(self, invoice_number: str) -> Optional[Dict[str, Any]]:
        for invoice in self._invoices.values():
            if invoice["invoice_number"] == invoice_number:
                return invoice
        return None

    def _ensure_unique_number(self, invoice_number: str, *, exclude_id: str | None = None) -> None:
        existing = self._find_by_number(invoice_number)
        if existing is not None and existing["id"] != exclude_id:
            raise ValidationError.for_field(
                "invoiceNumber", "Invoice number already exists"
            )

    async def create(self, document: Dict[str, Any]) -> Dict[str, Any]:
        self._ensure_unique_number(document["invoice_number"])
        invoice_id = self._next_id()
        timestamp = _utc_now_iso()
        record = copy.deepcopy(document)
        record.update({"id": invoice_id, "created_at": timestamp, "updated_at": timestamp})
        self._invoices[invoice_id] = record
        return copy.deepcopy(record)

    async def list(self, document_type: Optional[str] = None) -> List[Dict[str, Any]]:
        invoices = [
            copy.deepcopy(invoice)
            for invoice in self._invoices.values()
            if document_type is None or invoice.get("document_type") == document_type
        ]
        # ids are zero padded, so they order the same as insertion
        invoices.sort(key=lambda invoice: (invoice["created_at"], invoice["id"]), reverse=True)
        return invoices

    async def get(self, invoice_id: str) -> Dict[str, Any]:
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return copy.deepcopy(invoice)

    async def get_by_number(self, invoice_number: str) -> Optional[Dict[str, Any]]:
        invoice = self._find_by_number(invoice_number)
        return copy.deepcopy(invoice) if invoice is not None else None

    async def update(self, invoice_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        existing = self._invoices.get(invoice_id)
        if existing is None:
            raise NotFoundError("Invoice", invoice_id)
        if "invoice_number" in document:
            self._ensure_unique_number(document["invoice_number"], exclude_id=invoice_id)
        record = copy.deepcopy(existing)
        record.update(copy.deepcopy(document))
        record.update({"id": invoice_id, "created_at": existing["created_at"], "updated_at": _utc_now_iso()})
        self._invoices[invoice_id] = record
        return copy.deepcopy(record)

    async def delete(self, invoice_id: str) -> None:
        if self._invoices.pop(invoice_id, None) is None:
            raise NotFoundError("Invoice", invoice_id)


class TemplateRepository(_BaseRepository):
    """Named template snapshots. ``template_data`` is kept verbatim."""

    def __init__(self) -> None:
        super().__init__("TPL")
        self._templates: Dict[str, Dict[str, Any]] = {}

    async def create(self, name: str, template_data: Dict[str, Any]) -> Dict[str, Any]:
        template_id = self._next_id()
        record = {
            "id": template_id,
            "name": name,
            "template_data": copy.deepcopy(template_data),
            "created_at": _utc_now_iso(),
        }
        self._templates[template_id] = record
        return copy.deepcopy(record)

    async def list(self) -> List[Dict[str, Any]]:
        templates = [copy.deepcopy(template) for template in self._templates.values()]
        templates.sort(key=lambda template: (template["created_at"], template["id"]), reverse=True)
        return templates

    async def get(self, template_id: str) -> Dict[str, Any]:
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return copy.deepcopy(template)

    async def delete(self, template_id: str) -> None:
        if self._templates.pop(template_id, None) is None:
            raise NotFoundError("Template", template_id)


@dataclass
class DataStore:
    invoices: InvoiceRepository
    templates: TemplateRepository


_store: Optional[DataStore] = None


def get_store() -> DataStore:
    global _store
    if _store is None:
        _store = DataStore(
            invoices=InvoiceRepository(),
            templates=TemplateRepository(),
        )
    return _store


def reset_store() -> None:
    global _store
    _store = None
