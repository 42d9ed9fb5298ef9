from fastapi import APIRouter, Depends, File, UploadFile

from invoicegen.dependencies.services import get_upload_service
from invoicegen.routes.errors import to_http_exception
from invoicegen.schemas.template import UploadResponse
from invoicegen.services import UploadService
from invoicegen.services.exceptions import ServiceError

router = APIRouter()


async def _store(kind: str, upload: UploadFile, service: UploadService) -> UploadResponse:
    data = await upload.read(service.max_bytes + 1)
    try:
        result = await service.store(kind, upload.filename or "", upload.content_type, data)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc
    return UploadResponse(file_path=result.file_path, original_name=result.original_name)


@router.post("/logo", response_model=UploadResponse)
async def upload_logo(
    logo: UploadFile = File(...),
    service: UploadService = Depends(get_upload_service),
):
    return await _store("logo", logo, service)


@router.post("/qrcode", response_model=UploadResponse)
async def upload_qrcode(
    qrcode: UploadFile = File(...),
    service: UploadService = Depends(get_upload_service),
):
    return await _store("qrcode", qrcode, service)
