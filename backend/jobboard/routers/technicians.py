from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import require_service_key
from jobboard.services.schedule_service import technician_schedule

router = APIRouter(
    prefix="/technicians",
    tags=["technicians"],
    dependencies=[Depends(require_service_key)],
)


@router.get("/schedule")
async def schedule(
    days_ahead: int = Query(7, ge=1, le=90),
    start_date: str | None = None,
    end_date: str | None = None,
    sort_by: str = "job_count",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    technician_id: str | None = None,
    job_type: str | None = None,
    include_trends: bool = True,
    include_daily_breakdown: bool = True,
    db: Session = Depends(get_db),
):
    return technician_schedule(
        db,
        days_ahead=days_ahead,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        technician_id=technician_id,
        job_type=job_type,
        include_trends=include_trends,
        include_daily_breakdown=include_daily_breakdown,
    )
