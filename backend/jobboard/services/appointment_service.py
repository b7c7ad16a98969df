import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobboard.errors import JobBoardError, ValidationError
from jobboard.models.appointment import Appointment
from jobboard.services.user_lookup import resolve_user_id, resolve_user_ids
from jobboard.utils.timestamps import format_timestamp, normalize_timestamp, utc_now

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = (
    "Missing required fields: appointment.id, title, startTime, and endTime are required"
)


def _validated_times(appointment: dict) -> tuple[str, str]:
    try:
        start = normalize_timestamp(appointment["startTime"])
        end = normalize_timestamp(appointment["endTime"])
    except (TypeError, ValueError):
        raise ValidationError("startTime and endTime must be ISO-8601 timestamps")
    return start, end


def sync_appointment(db: Session, appointment: dict | None, location_id: str | None = None) -> dict:
    """Insert or update an appointment pushed by the external calendar.

    ``external_id`` is the idempotency key: syncing the same appointment twice
    updates the first row. ``assignedUserId`` and ``users`` carry display
    names; names that match no user are dropped.
    """
    appointment = appointment or {}
    if not all(appointment.get(k) for k in ("id", "title", "startTime", "endTime")):
        logger.error("Appointment sync payload missing required fields: %s", appointment)
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)

    external_id = str(appointment["id"])
    start_time, end_time = _validated_times(appointment)
    assigned_user_id = resolve_user_id(db, appointment.get("assignedUserId"))
    users = appointment.get("users")
    assigned_users = resolve_user_ids(db, users if isinstance(users, list) else None)

    fields = {
        "location_id": location_id,
        "address": appointment.get("address"),
        "title": appointment["title"],
        "calendar_id": appointment.get("calendarId"),
        "contact_id": appointment.get("contactId"),
        "group_id": appointment.get("groupId"),
        "appointment_status": appointment.get("appointmentStatus") or "confirmed",
        "assigned_user_id": assigned_user_id,
        "assigned_users": assigned_users,
        "notes": appointment.get("notes"),
        "source": appointment.get("source"),
        "start_time": start_time,
        "end_time": end_time,
    }

    now = format_timestamp(utc_now())
    existing = db.query(Appointment).filter(Appointment.external_id == external_id).first()
    action = "update" if existing else "create"
    try:
        if existing:
            for key, value in fields.items():
                setattr(existing, key, value)
            existing.updated_at = now
            record = existing
        else:
            record = Appointment(
                id=str(uuid.uuid4()),
                external_id=external_id,
                created_at=now,
                updated_at=now,
                **fields,
            )
            db.add(record)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error trying to %s appointment %s: %s", action, external_id, exc)
        raise JobBoardError(f"Failed to {action} appointment") from exc

    logger.info("Appointment %s %sd as %s", external_id, action, record.id)
    return {
        "success": True,
        "message": f"Appointment {action}d successfully",
        "id": record.id,
        "external_id": external_id,
    }
