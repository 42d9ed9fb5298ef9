from typing import Any, Dict, List

from pydantic import BaseModel, Field

from invoicegen.schemas.invoice import CamelModel


class TemplateCreate(CamelModel):
    name: str = Field(..., min_length=1)
    template_data: Dict[str, Any]


class TemplateRecord(CamelModel):
    id: str
    name: str
    template_data: Dict[str, Any]
    created_at: str


class TemplateListResponse(BaseModel):
    total: int
    items: List[TemplateRecord]


class UploadResponse(CamelModel):
    file_path: str
    original_name: str
