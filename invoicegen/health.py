# invoicegen/health.py
from fastapi import APIRouter

from invoicegen.services.store import get_store

router = APIRouter()

@router.get("/health")
async def health():
    store = get_store()
    invoices = await store.invoices.list()
    templates = await store.templates.list()
    return {"ok": True, "invoices": len(invoices), "templates": len(templates)}
