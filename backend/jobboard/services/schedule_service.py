from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from jobboard.config import settings
from jobboard.errors import ValidationError
from jobboard.models.job import Job
from jobboard.models.user import User, job_assignments
from jobboard.utils.timestamps import format_timestamp, parse_timestamp, utc_now

INACTIVE_STATUSES = ("completed", "cancelled")
SORT_KEYS = ("job_count", "earliest_date", "name")


def _assigned_worker_rows(db: Session, start: str, end: str, technician_id: str | None,
                          job_type: str | None, end_inclusive: bool = True):
    query = (
        db.query(Job, User)
        .join(job_assignments, job_assignments.c.job_id == Job.id)
        .join(User, User.id == job_assignments.c.user_id)
        .filter(User.role == "worker")
        .filter(Job.scheduled_date.isnot(None))
        .filter(Job.status.notin_(INACTIVE_STATUSES))
        .filter(Job.scheduled_date >= start)
    )
    query = query.filter(Job.scheduled_date <= end if end_inclusive else Job.scheduled_date < end)
    if technician_id:
        query = query.filter(User.id == technician_id)
    if job_type:
        query = query.filter(Job.job_type == job_type)
    return query.all()


def _trend(current: int, previous: int) -> tuple[str, int]:
    if previous > 0:
        percentage = round((current - previous) / previous * 100)
    else:
        percentage = 100 if current > 0 else 0
    if current > previous:
        return "up", percentage
    if current < previous:
        return "down", percentage
    return "same", percentage


def _daily_breakdown(jobs: list[Job], start: datetime, tz: ZoneInfo) -> list[dict]:
    local_start = start.astimezone(tz).date()
    days = []
    for offset in range(7):
        day = local_start + timedelta(days=offset)
        on_day = [j for j in jobs if parse_timestamp(j.scheduled_date).astimezone(tz).date() == day]
        days.append({
            "date": day.isoformat(),
            "job_count": len(on_day),
            "sales_amount": sum(j.price or 0 for j in on_day),
        })
    return days


def technician_schedule(db: Session, days_ahead: int = 7, start_date: str | None = None,
                        end_date: str | None = None, sort_by: str = "job_count",
                        sort_order: str = "desc", technician_id: str | None = None,
                        job_type: str | None = None, include_trends: bool = True,
                        include_daily_breakdown: bool = True) -> dict:
    """Workload per worker for the upcoming period, with a week-over-week trend."""
    if sort_by not in SORT_KEYS:
        raise ValidationError(f"sort_by must be one of: {', '.join(SORT_KEYS)}")
    try:
        now = utc_now()
        start = parse_timestamp(start_date) if start_date else now
        end = parse_timestamp(end_date) if end_date else now + timedelta(days=days_ahead)
    except ValueError:
        raise ValidationError("start_date and end_date must be ISO-8601 dates")

    technicians: dict[str, dict] = {}
    for job, user in _assigned_worker_rows(db, format_timestamp(start), format_timestamp(end),
                                           technician_id, job_type):
        tech = technicians.setdefault(user.id, {"id": user.id, "name": user.name, "jobs": []})
        tech["jobs"].append(job)

    previous_counts: dict[str, int] = {}
    if include_trends:
        prev_rows = _assigned_worker_rows(
            db, format_timestamp(start - timedelta(days=7)), format_timestamp(start),
            technician_id, job_type, end_inclusive=False,
        )
        for _, user in prev_rows:
            previous_counts[user.id] = previous_counts.get(user.id, 0) + 1

    tz = ZoneInfo(settings.business_timezone)
    results = []
    for tech in technicians.values():
        jobs = sorted(tech["jobs"], key=lambda j: j.scheduled_date)
        previous = previous_counts.get(tech["id"], 0)
        trend, trend_percentage = _trend(len(jobs), previous)
        results.append({
            "id": tech["id"],
            "name": tech["name"],
            "job_count": len(jobs),
            "earliest_scheduled_date": jobs[0].scheduled_date if jobs else None,
            "total_hours": round(sum(j.estimated_duration or 0 for j in jobs) / 60),
            "total_sales": sum(j.price or 0 for j in jobs),
            "job_types": list(dict.fromkeys(j.job_type for j in jobs)),
            "previous_week_job_count": previous,
            "trend": trend,
            "trend_percentage": trend_percentage,
            "daily_breakdown": _daily_breakdown(jobs, start, tz) if include_daily_breakdown else [],
        })

    sort_keys = {
        "job_count": lambda t: t["job_count"],
        "earliest_date": lambda t: t["earliest_scheduled_date"] or "\uffff",
        "name": lambda t: t["name"].lower(),
    }
    results.sort(key=sort_keys[sort_by], reverse=sort_order == "desc")

    return {
        "technicians": results,
        "summary": {
            "total_technicians": len(results),
            "total_jobs": sum(t["job_count"] for t in results),
            "date_range": {"start": start.date().isoformat(), "end": end.date().isoformat()},
        },
    }
