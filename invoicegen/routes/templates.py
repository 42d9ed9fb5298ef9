from fastapi import APIRouter, Depends

from invoicegen.dependencies.services import get_template_service
from invoicegen.routes.errors import to_http_exception
from invoicegen.schemas.invoice import InvoiceDraft, MessageResponse
from invoicegen.schemas.template import TemplateCreate, TemplateListResponse, TemplateRecord
from invoicegen.services import TemplateService
from invoicegen.services.exceptions import ServiceError

router = APIRouter()


@router.get("", response_model=TemplateListResponse)
async def list_templates(service: TemplateService = Depends(get_template_service)):
    try:
        return await service.list()
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post("", response_model=TemplateRecord, status_code=201)
async def create_template(
    req: TemplateCreate,
    service: TemplateService = Depends(get_template_service),
):
    try:
        return await service.create(req)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{template_id}", response_model=TemplateRecord)
async def get_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
):
    try:
        return await service.get(template_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{template_id}", response_model=MessageResponse)
async def delete_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
):
    try:
        await service.delete(template_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return MessageResponse(message="Template deleted successfully")


@router.post("/{template_id}/apply", response_model=InvoiceDraft)
async def apply_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
):
    try:
        return await service.apply(template_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
