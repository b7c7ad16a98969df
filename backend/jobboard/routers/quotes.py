import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import get_http_client, require_service_key
from jobboard.models.quote import AcceptedQuote
from jobboard.routers.jobs import job_with_notification
from jobboard.schemas.job import JobWithNotification
from jobboard.schemas.quote import QuoteResponse, QuoteWebhookRequest
from jobboard.services import quote_service

router = APIRouter(
    prefix="/quotes",
    tags=["quotes"],
    dependencies=[Depends(require_service_key)],
)


@router.post("/webhook")
async def receive_quote(req: QuoteWebhookRequest, db: Session = Depends(get_db)):
    return quote_service.receive_quote(db, req.model_dump())


@router.get("", response_model=list[QuoteResponse])
async def list_quotes(status: str | None = None, db: Session = Depends(get_db)):
    query = db.query(AcceptedQuote)
    if status:
        query = query.filter(AcceptedQuote.status == status)
    return query.order_by(AcceptedQuote.created_at.desc()).all()


@router.post("/{quote_id}/convert", response_model=JobWithNotification, status_code=201)
def convert_quote(quote_id: str, db: Session = Depends(get_db),
                  client: httpx.Client = Depends(get_http_client)):
    return job_with_notification(db, client, quote_service.convert_quote(db, quote_id))
