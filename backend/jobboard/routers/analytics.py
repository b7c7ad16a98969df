import httpx
from fastapi import APIRouter, Depends

from jobboard.dependencies import get_http_client, require_service_key
from jobboard.schemas.analytics import InvoiceAnalyticsRequest
from jobboard.services.analytics_service import fetch_invoice_analytics

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(require_service_key)],
)


@router.post("/invoices")
def invoice_analytics(req: InvoiceAnalyticsRequest,
                      client: httpx.Client = Depends(get_http_client)):
    return fetch_invoice_analytics(client, req.model_dump())
