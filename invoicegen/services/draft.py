"""Pure reducers over :class:`InvoiceDraft`.

A draft is owned by its caller. Each function here returns a new draft with
the derived totals recomputed from the full item list; nothing is mutated
in place.
"""

from __future__ import annotations

import time
from datetime import date
from typing import Any, Dict, Mapping

from invoicegen.schemas.invoice import InvoiceDraft, LineItem
from invoicegen.services.totals import recompute

_DERIVED_FIELDS = ("subtotal", "tax_amount", "total")


def generate_invoice_number(prefix: str = "INV") -> str:
    return f"{prefix}-{str(int(time.time() * 1000))[-6:]}"


def with_totals(draft: InvoiceDraft) -> InvoiceDraft:
    totals = recompute(draft.items, draft.tax_rate, draft.discount_amount)
    return draft.model_copy(update=totals.as_dict())


def new_draft(**overrides: Any) -> InvoiceDraft:
    data: Dict[str, Any] = {
        "invoice_number": generate_invoice_number(),
        "issue_date": date.today().isoformat(),
    }
    data.update(overrides)
    return with_totals(InvoiceDraft.model_validate(data))


def apply_changes(draft: InvoiceDraft, **changes: Any) -> InvoiceDraft:
    """Apply field changes and recompute totals.

    Values are validated through the model, so ``tax_rate="abc"`` ends up as
    zero exactly as it would on a fresh draft. Derived fields passed in are
    ignored.
    """
    data = draft.model_dump()
    data.update({key: value for key, value in changes.items() if key not in _DERIVED_FIELDS})
    return with_totals(InvoiceDraft.model_validate(data))


def add_item(draft: InvoiceDraft, item: LineItem | Mapping[str, Any]) -> InvoiceDraft:
    items = list(draft.items) + [LineItem.model_validate(item)]
    return apply_changes(draft, items=items)


def update_item(draft: InvoiceDraft, index: int, **changes: Any) -> InvoiceDraft:
    items = list(draft.items)
    current = items[index].model_dump()
    current.update(changes)
    items[index] = LineItem.model_validate(current)
    return apply_changes(draft, items=items)


def remove_item(draft: InvoiceDraft, index: int) -> InvoiceDraft:
    items = list(draft.items)
    del items[index]
    return apply_changes(draft, items=items)


def move_item(draft: InvoiceDraft, index: int, new_index: int) -> InvoiceDraft:
    items = list(draft.items)
    item = items.pop(index)
    items.insert(new_index, item)
    return apply_changes(draft, items=items)


def snapshot(draft: InvoiceDraft) -> Dict[str, Any]:
    """JSON-ready copy of a draft for storing as template data."""
    return draft.model_dump(mode="json", by_alias=True)


def draft_from_template(template_data: Mapping[str, Any]) -> InvoiceDraft:
    """Start a new draft from a stored template snapshot.

    Unknown keys are dropped. The issue date and document number are fresh
    unless the snapshot carries them.
    """
    known = set(InvoiceDraft.model_fields)
    aliases = {field.alias: name for name, field in InvoiceDraft.model_fields.items() if field.alias}
    data: Dict[str, Any] = {}
    for key, value in template_data.items():
        name = aliases.get(key, key)
        if name in known and name not in _DERIVED_FIELDS:
            data[name] = value
    if not data.get("invoice_number"):
        data["invoice_number"] = generate_invoice_number()
    if not data.get("issue_date"):
        data["issue_date"] = date.today().isoformat()
    return with_totals(InvoiceDraft.model_validate(data))
