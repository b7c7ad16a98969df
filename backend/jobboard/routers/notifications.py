import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import get_http_client, require_service_key
from jobboard.errors import PersistenceError
from jobboard.schemas.notification import DispatchSummary, JobIdRequest
from jobboard.services import reminder_service

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_service_key)],
)


@router.post("/dispatch", response_model=DispatchSummary)
def dispatch_reminders(db: Session = Depends(get_db),
                       client: httpx.Client = Depends(get_http_client)):
    """Send reminders for every job due within the window. Called by the cron trigger."""
    return reminder_service.dispatch_due_reminders(db, client)


@router.post("/check")
def check_job_notification(req: JobIdRequest, db: Session = Depends(get_db),
                           client: httpx.Client = Depends(get_http_client)):
    try:
        return reminder_service.check_job_notification(db, client, req.jobId)
    except PersistenceError as exc:
        return JSONResponse(
            status_code=207,
            content={
                "warning": "Webhook sent but failed to update database",
                "job_id": req.jobId,
                "error": exc.message,
            },
        )
