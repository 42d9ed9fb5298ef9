from __future__ import annotations

from typing import List

import pydantic
from pydantic import EmailStr, TypeAdapter

from invoicegen.schemas.invoice import InvoiceDraft
from invoicegen.services.exceptions import FieldError, ValidationError

_email = TypeAdapter(EmailStr)

_REQUIRED = (
    ("company_name", "companyName", "Company name is required"),
    ("client_name", "clientName", "Client name is required"),
    ("invoice_number", "invoiceNumber", "Document number is required"),
    ("issue_date", "issueDate", "Issue date is required"),
)


def _is_email(value: str) -> bool:
    try:
        _email.validate_python(value)
    except pydantic.ValidationError:
        return False
    return True


def validate_for_save(draft: InvoiceDraft) -> None:
    """Raise :class:`ValidationError` listing every rule the draft breaks."""
    errors: List[FieldError] = []
    for attr, field, message in _REQUIRED:
        if not getattr(draft, attr).strip():
            errors.append(FieldError(field, message))
    if not _is_email(draft.company_email.strip()):
        errors.append(FieldError("companyEmail", "Valid email is required"))
    if draft.client_email.strip() and not _is_email(draft.client_email.strip()):
        errors.append(FieldError("clientEmail", "Client email is not valid"))
    if not draft.items:
        errors.append(FieldError("items", "At least one item is required"))
    if errors:
        raise ValidationError("Validation error", errors)


def from_pydantic(exc: pydantic.ValidationError, message: str = "Validation error") -> ValidationError:
    errors = [
        FieldError(".".join(str(part) for part in error["loc"]) or "body", error["msg"])
        for error in exc.errors()
    ]
    return ValidationError(message, errors, cause=exc)
