import logging
import uuid

from sqlalchemy.orm import Session

from jobboard.errors import ConflictError, NotFoundError, ValidationError
from jobboard.models.job import Job
from jobboard.models.quote import AcceptedQuote
from jobboard.services import job_service
from jobboard.services.user_lookup import resolve_user_id
from jobboard.utils.timestamps import format_timestamp, normalize_timestamp, utc_now

logger = logging.getLogger(__name__)


def _scheduled_date(value) -> str | None:
    try:
        return normalize_timestamp(value)
    except (TypeError, ValueError):
        raise ValidationError("scheduled_date must be an ISO-8601 timestamp")


def receive_quote(db: Session, data: dict) -> dict:
    """Store a quote accepted in the CRM, keyed by its appointment when it has one."""
    if not data.get("customer_name") or not data.get("jobs_selected"):
        raise ValidationError("customer_name and jobs_selected are required")

    appointment_id = data.get("appointment_id")
    if appointment_id:
        existing_job = db.query(Job.id).filter(Job.appointment_id == appointment_id).first()
        if existing_job:
            logger.info("Job already exists for appointment_id %s, skipping", appointment_id)
            return {
                "success": True,
                "message": "Job already exists for this appointment",
                "job_id": existing_job.id,
            }

    quoted_by = data.get("quoted_by")
    quoted_by_id = None
    if isinstance(quoted_by, str):
        quoted_by_id = resolve_user_id(db, quoted_by, active_only=True, case_sensitive=True)

    fields = {
        "customer_name": data["customer_name"],
        "customer_phone": data.get("customer_phone"),
        "customer_email": data.get("customer_email"),
        "customer_address": data.get("customer_address"),
        "quoted_by": quoted_by_id,
        "jobs_selected": data["jobs_selected"],
        "first_time": bool(data.get("first_time")),
        "scheduled_date": _scheduled_date(data.get("scheduled_date")),
        "ghl_contact_id": data.get("ghl_contact_id"),
    }
    now = format_timestamp(utc_now())

    quote = None
    if appointment_id:
        quote = db.query(AcceptedQuote).filter(AcceptedQuote.appointment_id == appointment_id).first()
    if quote:
        logger.info("Updating existing quote %s for appointment_id %s", quote.id, appointment_id)
        for key, value in fields.items():
            setattr(quote, key, value)
        quote.updated_at = now
        message = "Quote updated successfully"
    else:
        quote = AcceptedQuote(
            id=str(uuid.uuid4()),
            appointment_id=appointment_id,
            status="pending",
            created_at=now,
            updated_at=now,
            **fields,
        )
        db.add(quote)
        message = "Quote received successfully"
    db.commit()
    return {"success": True, "message": message, "id": quote.id}


def _number(value) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _whole_minutes(value) -> int | None:
    number = _number(value)
    return int(number) if number is not None else None


def _selected_title(item: dict) -> str:
    return item.get("title") or item.get("name") or ""


def convert_quote(db: Session, quote_id: str) -> Job:
    quote = db.query(AcceptedQuote).filter(AcceptedQuote.id == quote_id).first()
    if not quote:
        raise NotFoundError("Quote not found")
    if quote.status == "converted":
        raise ConflictError("Quote has already been converted")

    selected = [s for s in quote.jobs_selected or [] if isinstance(s, dict)]
    titles = [t for t in (_selected_title(s) for s in selected) if t]
    prices = [p for p in (_number(s.get("price")) for s in selected) if p is not None]
    durations = [d for d in (_number(s.get("duration")) for s in selected) if d is not None]

    job = job_service.create_job(
        db,
        {
            "title": ", ".join(titles) or f"Job for {quote.customer_name}",
            "customer_name": quote.customer_name,
            "customer_email": quote.customer_email,
            "customer_phone": quote.customer_phone,
            "customer_address": quote.customer_address,
            "quoted_by": quote.quoted_by,
            "first_time": bool(quote.first_time),
            "scheduled_date": quote.scheduled_date,
            "appointment_id": quote.appointment_id,
            "ghl_contact_id": quote.ghl_contact_id,
            "price": sum(prices) if prices else None,
            "estimated_duration": int(sum(durations)) if durations else None,
        },
        services=[
            {
                "service_name": _selected_title(s) or "Service",
                "service_description": s.get("description"),
                "price": _number(s.get("price")),
                "duration": _whole_minutes(s.get("duration")),
            }
            for s in selected
        ],
    )
    quote.status = "converted"
    quote.updated_at = format_timestamp(utc_now())
    db.commit()
    logger.info("Converted quote %s into job %s", quote.id, job.id)
    return job
