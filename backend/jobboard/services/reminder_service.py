"""Job reminder webhooks.

Two entry points share one send path:

* ``dispatch_due_reminders`` is run periodically by an external trigger and
  sends a reminder for every job scheduled before ``now + window`` that has
  not been notified yet, overdue jobs included.
* ``check_job_notification`` handles a single job right after it is created
  or edited, sending immediately when the job is already inside the window.

``Job.webhook_sent_at`` is the marker that a reminder went out. It is written
once, after a successful POST, and never cleared here. Before posting, a run
takes a claim on the job with a conditional update so two overlapping runs
cannot both send. A claim is released when the send fails and expires after
``reminder_claim_ttl_seconds`` if the process dies mid-send.

If the POST succeeds but the marker write fails, the job stays eligible and
the next run sends again. That duplicate is accepted.
"""
import logging
from datetime import datetime, timedelta

import httpx
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobboard.config import settings
from jobboard.errors import NotFoundError, PersistenceError, UpstreamError, ValidationError
from jobboard.models.job import Job
from jobboard.services import webhook_client
from jobboard.utils.timestamps import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

REMINDER_NOTIFICATION_TYPE = "job_reminder"


def _window() -> timedelta:
    return timedelta(minutes=settings.reminder_window_minutes)


def build_reminder_payload(job: Job, sent_at: datetime,
                           notification_type: str = REMINDER_NOTIFICATION_TYPE) -> dict:
    return {
        "job_id": job.id,
        "title": job.title,
        "description": job.description,
        "customer": {
            "name": job.customer_name,
            "email": job.customer_email,
            "phone": job.customer_phone,
            "address": job.customer_address,
        },
        "schedule": {
            "scheduled_date": job.scheduled_date,
            "is_recurring": job.is_recurring,
            "estimated_duration": job.estimated_duration,
        },
        "details": {
            "job_type": job.job_type,
            "status": job.status,
            "price": job.price,
            "first_time": job.first_time,
            "notes": job.notes,
            "quoted_by": job.quoted_by,
        },
        "notification_type": notification_type,
        "sent_at": format_timestamp(sent_at),
    }


def select_due_jobs(db: Session, now: datetime) -> list[Job]:
    window_end = format_timestamp(now + _window())
    return (
        db.query(Job)
        .filter(Job.scheduled_date.isnot(None))
        .filter(Job.webhook_sent_at.is_(None))
        .filter(Job.scheduled_date < window_end)
        .order_by(Job.scheduled_date.asc())
        .all()
    )


def claim_reminder(db: Session, job_id: str, now: datetime) -> bool:
    """Atomically claim a job for sending. False if it is sent or claimed elsewhere."""
    stale_before = format_timestamp(now - timedelta(seconds=settings.reminder_claim_ttl_seconds))
    updated = (
        db.query(Job)
        .filter(Job.id == job_id)
        .filter(Job.webhook_sent_at.is_(None))
        .filter(or_(Job.reminder_claimed_at.is_(None), Job.reminder_claimed_at < stale_before))
        .update({Job.reminder_claimed_at: format_timestamp(now)}, synchronize_session=False)
    )
    db.commit()
    return updated == 1


def release_reminder(db: Session, job_id: str):
    try:
        (
            db.query(Job)
            .filter(Job.id == job_id)
            .filter(Job.webhook_sent_at.is_(None))
            .update({Job.reminder_claimed_at: None}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        # The claim expires on its own after the TTL.
        logger.error("Could not release reminder claim for job %s: %s", job_id, exc)


def mark_reminder_sent(db: Session, job_id: str, sent_at: datetime):
    try:
        updated = (
            db.query(Job)
            .filter(Job.id == job_id)
            .filter(Job.webhook_sent_at.is_(None))
            .update(
                {Job.webhook_sent_at: format_timestamp(sent_at), Job.reminder_claimed_at: None},
                synchronize_session=False,
            )
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not record webhook_sent_at for job %s: %s", job_id, exc)
        raise PersistenceError("Failed to record webhook_sent_at", job_id=job_id) from exc
    if updated != 1:
        logger.warning("webhook_sent_at for job %s was already set", job_id)


def _send_reminder(db: Session, client: httpx.Client, job: Job, now: datetime) -> bool:
    """Claim, post and mark one job. Returns False when another run holds the claim."""
    job_id = job.id
    if not claim_reminder(db, job_id, now):
        logger.info("Job %s is already being notified, skipping", job_id)
        return False

    db.refresh(job)
    payload = build_reminder_payload(job, now)
    try:
        webhook_client.post_json(client, settings.reminder_webhook_url, payload)
    except Exception:
        release_reminder(db, job_id)
        raise

    logger.info("Webhook sent successfully for job %s", job_id)
    try:
        mark_reminder_sent(db, job_id, now)
    except PersistenceError:
        # Leave the job eligible for the next run.
        release_reminder(db, job_id)
        raise
    return True


def dispatch_due_reminders(db: Session, client: httpx.Client, now: datetime | None = None) -> dict:
    now = now or utc_now()
    processed_at = format_timestamp(now)
    logger.info("Starting job reminder dispatch at %s", processed_at)

    jobs = select_due_jobs(db, now)
    logger.info("Found %d jobs that need webhook notifications", len(jobs))
    if not jobs:
        return {
            "message": "No jobs requiring webhook notifications found",
            "total_jobs": 0,
            "successful": 0,
            "errors": 0,
            "skipped": 0,
            "processed_at": processed_at,
        }

    job_ids = [job.id for job in jobs]
    successful = errors = skipped = 0
    failures = []
    for job_id, job in zip(job_ids, jobs):
        try:
            if _send_reminder(db, client, job, now):
                successful += 1
            else:
                skipped += 1
        except UpstreamError as exc:
            errors += 1
            failures.append({"job_id": job_id, "error": exc.message, "webhook_status": exc.upstream_status})
            logger.warning("Webhook failed for job %s: %s", job_id, exc.message)
        except PersistenceError as exc:
            errors += 1
            failures.append({"job_id": job_id, "error": exc.message})
            logger.error("Webhook sent for job %s but marker write failed: %s", job_id, exc.message)
        except Exception as exc:
            db.rollback()
            errors += 1
            failures.append({"job_id": job_id, "error": f"Unexpected error: {type(exc).__name__}"})
            logger.exception("Error processing job %s", job_id)

    result = {
        "message": "Webhook notifications processed",
        "total_jobs": len(jobs),
        "successful": successful,
        "errors": errors,
        "skipped": skipped,
        "failures": failures,
        "processed_at": processed_at,
    }
    logger.info("Reminder dispatch complete: %d sent, %d failed, %d skipped",
                successful, errors, skipped)
    return result


def check_job_notification(db: Session, client: httpx.Client, job_id: str | None,
                           now: datetime | None = None) -> dict:
    """Send the reminder for one job now if it is due, otherwise report why not.

    Raises ValidationError, NotFoundError, UpstreamError (send failed) and
    PersistenceError (sent, but the marker could not be written).
    """
    if not job_id:
        raise ValidationError("Job ID is required")

    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found", job_id=job_id)

    if not job.scheduled_date or job.webhook_sent_at:
        return {
            "message": "Job does not require immediate notification",
            "job_id": job_id,
            "reason": "no_scheduled_date" if not job.scheduled_date else "already_notified",
        }

    now = now or utc_now()
    scheduled = parse_timestamp(job.scheduled_date)
    if scheduled > now + _window():
        return {
            "message": "Job notification will be sent by the scheduled dispatcher",
            "job_id": job_id,
            "scheduled_date": job.scheduled_date,
            "notification_time": format_timestamp(scheduled - _window()),
        }

    logger.info("Sending immediate notification for job %s", job_id)
    try:
        sent = _send_reminder(db, client, job, now)
    except UpstreamError as exc:
        raise UpstreamError(
            "Failed to send webhook notification",
            upstream_status=exc.upstream_status,
            job_id=job_id,
            webhook_status=exc.upstream_status,
        ) from exc

    if not sent:
        return {
            "message": "Job does not require immediate notification",
            "job_id": job_id,
            "reason": "dispatch_in_progress",
        }
    return {
        "message": "Immediate notification sent successfully",
        "job_id": job_id,
        "sent_at": format_timestamp(now),
        "scheduled_date": job.scheduled_date,
    }


def notification_outcome(db: Session, client: httpx.Client, job_id: str) -> dict:
    """Run check_job_notification for a caller whose own write already succeeded."""
    try:
        return check_job_notification(db, client, job_id)
    except (UpstreamError, PersistenceError) as exc:
        logger.warning("Reminder for job %s not completed: %s", job_id, exc.message)
        return {"error": exc.message, **exc.extra}
