from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from invoicegen.clients.assets import AssetLoader
from invoicegen.config import Settings, get_settings
from invoicegen.services import InvoiceService, TemplateService, UploadService


@lru_cache(maxsize=1)
def get_asset_loader_cached() -> AssetLoader:
    settings = get_settings()
    return AssetLoader(settings.upload_dir, timeout=settings.asset_timeout)


def get_asset_loader(settings: Settings = Depends(get_settings)) -> AssetLoader:
    return get_asset_loader_cached()


def get_invoice_service(
    loader: AssetLoader = Depends(get_asset_loader),
    settings: Settings = Depends(get_settings),
) -> InvoiceService:
    return InvoiceService(
        loader=loader,
        currency_symbol=settings.currency_symbol,
        margin=settings.page_margin_mm,
    )


def get_template_service() -> TemplateService:
    return TemplateService()


def get_upload_service(settings: Settings = Depends(get_settings)) -> UploadService:
    return UploadService(settings.upload_dir, max_bytes=settings.max_upload_bytes)
