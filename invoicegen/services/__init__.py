"""Service package public API definitions.

Service implementations are imported lazily. ``invoicegen.schemas`` imports
``invoicegen.services.totals`` at import time, and the services themselves
import the schemas, so importing them eagerly here would be circular.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "InvoiceService",
    "TemplateService",
    "UploadService",
]

_SERVICE_MODULES = {
    "InvoiceService": "invoice",
    "TemplateService": "template",
    "UploadService": "uploads",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .invoice import InvoiceService as InvoiceService
    from .template import TemplateService as TemplateService
    from .uploads import UploadService as UploadService
