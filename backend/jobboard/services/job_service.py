import logging
import uuid
from datetime import timedelta

from sqlalchemy.orm import Session

from jobboard.errors import NotFoundError, ValidationError
from jobboard.models.job import Job, JobService
from jobboard.models.user import User
from jobboard.utils.timestamps import format_timestamp, utc_now

logger = logging.getLogger(__name__)

# Fields the reminder machinery owns; job edits never touch them.
_PROTECTED_FIELDS = {"id", "webhook_sent_at", "reminder_claimed_at", "created_at", "updated_at"}


def get_job(db: Session, job_id: str) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found", job_id=job_id)
    return job


def _load_users(db: Session, user_ids: list[str]) -> list[User]:
    users = db.query(User).filter(User.id.in_(user_ids)).all() if user_ids else []
    missing = set(user_ids) - {u.id for u in users}
    if missing:
        raise ValidationError(f"Unknown user ids: {sorted(missing)}")
    return users


def _check_quoted_by(db: Session, user_id: str | None):
    if user_id and not db.query(User.id).filter(User.id == user_id).first():
        raise ValidationError(f"Unknown user id for quoted_by: {user_id}")


def _build_services(services: list[dict], now: str) -> list[JobService]:
    return [
        JobService(
            id=str(uuid.uuid4()),
            service_name=s["service_name"],
            service_description=s.get("service_description"),
            price=s.get("price"),
            duration=s.get("duration"),
            created_at=now,
        )
        for s in services
    ]


def create_job(db: Session, data: dict, assigned_users: list[str] | None = None,
               services: list[dict] | None = None) -> Job:
    now = format_timestamp(utc_now())
    fields = {k: v for k, v in data.items() if k not in _PROTECTED_FIELDS}
    _check_quoted_by(db, fields.get("quoted_by"))
    job = Job(id=str(uuid.uuid4()), created_at=now, updated_at=now, **fields)
    job.assignees = _load_users(db, assigned_users or [])
    job.services = _build_services(services or [], now)
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("Created job %s (%s)", job.id, job.title)
    return job


def update_job(db: Session, job_id: str, changes: dict, assigned_users: list[str] | None = None) -> Job:
    job = get_job(db, job_id)
    _check_quoted_by(db, changes.get("quoted_by"))
    for key, value in changes.items():
        if key in _PROTECTED_FIELDS:
            continue
        setattr(job, key, value)
    if assigned_users is not None:
        job.assignees = _load_users(db, assigned_users)
    job.updated_at = format_timestamp(utc_now())
    db.commit()
    db.refresh(job)
    return job


def list_jobs(db: Session, status: str | None = None, scheduled_from: str | None = None,
              scheduled_to: str | None = None, page: int = 1, per_page: int = 20) -> tuple[list[Job], int]:
    query = db.query(Job)
    if status:
        query = query.filter(Job.status == status)
    if scheduled_from:
        query = query.filter(Job.scheduled_date >= scheduled_from)
    if scheduled_to:
        query = query.filter(Job.scheduled_date <= scheduled_to)

    total = query.count()
    jobs = (
        query.order_by(Job.scheduled_date.is_(None), Job.scheduled_date.asc(), Job.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return jobs, total


def sweep_overdue_jobs(db: Session) -> int:
    """Move pending/confirmed jobs whose scheduled day has arrived to service_due."""
    now = utc_now()
    # Anything scheduled before tomorrow 00:00 UTC is on or before today.
    tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0)
    updated = (
        db.query(Job)
        .filter(Job.status.in_(("pending", "confirmed")))
        .filter(Job.scheduled_date.isnot(None))
        .filter(Job.scheduled_date < format_timestamp(tomorrow))
        .update(
            {Job.status: "service_due", Job.updated_at: format_timestamp(now)},
            synchronize_session=False,
        )
    )
    db.commit()
    logger.info("Moved %d overdue jobs to service_due", updated)
    return updated
