"""Outbound webhooks fired on demand for a single job, plus a connectivity check."""
import logging

import httpx
from sqlalchemy.orm import Session

from jobboard.config import settings
from jobboard.errors import UpstreamError, ValidationError
from jobboard.services import webhook_client
from jobboard.services.job_service import get_job
from jobboard.utils.timestamps import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)


def send_test_webhook(client: httpx.Client) -> dict:
    payload = {
        "test": True,
        "message": "Testing webhook connectivity",
        "timestamp": format_timestamp(utc_now()),
        "job_id": "test-job-123",
        "notification_type": "test_notification",
    }
    logger.info("Testing webhook connectivity")
    response = webhook_client.post_json(client, settings.reminder_webhook_url, payload)
    return {
        "success": True,
        "message": "Test webhook sent successfully",
        "webhook_status": response.status_code,
        "webhook_response": response.text,
        "sent_at": format_timestamp(utc_now()),
    }


def service_due_params(job) -> dict:
    date = time = ""
    if job.scheduled_date:
        scheduled = parse_timestamp(job.scheduled_date)
        date = scheduled.strftime("%Y-%m-%d")
        time = scheduled.strftime("%H:%M:%S")
    return {
        "email": job.customer_email or "",
        "date": date,
        "time": time,
        "assignedusers": ",".join(u.name for u in job.assignees if u.name),
    }


def send_service_due(db: Session, client: httpx.Client, job_id: str | None) -> dict:
    """Tell the CRM a job's service is due. Success is reported, not raised."""
    if not job_id:
        raise ValidationError("Job ID is required")
    job = get_job(db, job_id)

    params = service_due_params(job)
    url = str(httpx.URL(settings.service_due_webhook_url or "", params=params))
    try:
        webhook_client.get(client, settings.service_due_webhook_url, params)
        success = True
    except UpstreamError as exc:
        logger.error("Service due webhook failed for job %s: %s", job_id, exc.message)
        success = False
    return {"success": success, "jobId": job_id, "webhookUrl": url}


def send_project_completion(db: Session, client: httpx.Client, job_id: str | None) -> dict:
    """Post the project summary and the customer summary; both are always attempted."""
    if not job_id:
        raise ValidationError("Job ID is required")
    job = get_job(db, job_id)

    project_payload = {
        "project_value": job.price or 0,
        "project_title": job.title,
        "quoted_by_name": job.quoted_by_user.name if job.quoted_by_user else "",
        "first_time": bool(job.first_time),
        "employees_assigned": [u.name for u in job.assignees if u.name],
    }
    customer_payload = {
        "customer_name": job.customer_name or "",
        "customer_email": job.customer_email or "",
        "customer_phone": job.customer_phone or "",
        "selected_services": [
            {"name": s.service_name, "description": s.service_description, "price": s.price or 0}
            for s in job.services
        ],
    }

    delivered = []
    for name, url, payload in (
        ("project", settings.project_webhook_url, project_payload),
        ("customer", settings.customer_webhook_url, customer_payload),
    ):
        try:
            webhook_client.post_json(client, url, payload)
            delivered.append(name)
            logger.info("%s webhook sent for job %s", name.capitalize(), job_id)
        except UpstreamError as exc:
            logger.error("%s webhook failed for job %s: %s", name.capitalize(), job_id, exc.message)

    if not delivered:
        raise UpstreamError("Both webhooks failed", job_id=job_id)
    return {"success": True, "delivered": delivered}
