import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import get_http_client, require_service_key
from jobboard.errors import UpstreamError
from jobboard.schemas.notification import JobIdRequest
from jobboard.services import job_webhooks
from jobboard.utils.timestamps import format_timestamp, utc_now

router = APIRouter(
    prefix="/webhooks",
    tags=["webhooks"],
    dependencies=[Depends(require_service_key)],
)


@router.post("/test")
def test_webhook(client: httpx.Client = Depends(get_http_client)):
    try:
        return job_webhooks.send_test_webhook(client)
    except UpstreamError as exc:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": exc.message,
                     "timestamp": format_timestamp(utc_now())},
        )


@router.post("/service-due")
def service_due(req: JobIdRequest, db: Session = Depends(get_db),
                client: httpx.Client = Depends(get_http_client)):
    result = job_webhooks.send_service_due(db, client, req.jobId)
    return JSONResponse(status_code=200 if result["success"] else 500, content=result)


@router.post("/project-completion")
def project_completion(req: JobIdRequest, db: Session = Depends(get_db),
                       client: httpx.Client = Depends(get_http_client)):
    return job_webhooks.send_project_completion(db, client, req.jobId)
