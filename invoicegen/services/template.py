from __future__ import annotations

import logging

import pydantic

from invoicegen.schemas.invoice import InvoiceDraft
from invoicegen.schemas.template import TemplateCreate, TemplateListResponse, TemplateRecord
from invoicegen.services.draft import draft_from_template
from invoicegen.services.exceptions import ServiceError, UnexpectedError, ValidationError
from invoicegen.services.store import TemplateRepository, get_store
from invoicegen.services.validation import from_pydantic

logger = logging.getLogger(__name__)


class TemplateService:
    """Saved form snapshots. The stored payload is never inspected."""

    def __init__(self, repository: TemplateRepository | None = None) -> None:
        self._repository = repository or get_store().templates

    async def create(self, request: TemplateCreate) -> TemplateRecord:
        name = request.name.strip()
        if not name:
            raise ValidationError.for_field("name", "Template name is required")
        try:
            record = await self._repository.create(name, request.template_data)
            logger.info("Saved template %r as %s", name, record["id"])
            return TemplateRecord.model_validate(record)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while creating template")
            raise UnexpectedError("Failed to create template", cause=exc)

    async def list(self) -> TemplateListResponse:
        try:
            records = await self._repository.list()
            items = [TemplateRecord.model_validate(record) for record in records]
            return TemplateListResponse(total=len(items), items=items)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while listing templates")
            raise UnexpectedError("Failed to fetch templates", cause=exc)

    async def get(self, template_id: str) -> TemplateRecord:
        record = await self._repository.get(template_id)
        return TemplateRecord.model_validate(record)

    async def delete(self, template_id: str) -> None:
        try:
            await self._repository.delete(template_id)
            logger.info("Deleted template %s", template_id)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while deleting template %s", template_id)
            raise UnexpectedError("Failed to delete template", cause=exc)

    async def apply(self, template_id: str) -> InvoiceDraft:
        """Turn a stored template into a fresh draft with current totals."""
        template = await self.get(template_id)
        try:
            return draft_from_template(template.template_data)
        except pydantic.ValidationError as exc:
            raise from_pydantic(exc, "Template data is not a valid invoice") from exc
