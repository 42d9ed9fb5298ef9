from fastapi import APIRouter

from invoicegen.schemas.invoice import TotalsRequest, TotalsResponse
from invoicegen.services.totals import recompute

router = APIRouter()


@router.post("", response_model=TotalsResponse)
async def compute_totals(req: TotalsRequest):
    totals = recompute(req.items, req.tax_rate, req.discount_amount)
    return TotalsResponse(**totals.as_dict())
