import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import get_http_client, require_service_key
from jobboard.models.job import Job
from jobboard.models.user import User
from jobboard.schemas.job import (
    AssignmentCreate,
    JobCreate,
    JobListResponse,
    JobResponse,
    JobServiceResponse,
    JobUpdate,
    JobWithNotification,
)
from jobboard.services import job_service, reminder_service
from jobboard.utils.timestamps import normalize_timestamp

router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
    dependencies=[Depends(require_service_key)],
)


def job_to_response(job: Job) -> JobResponse:
    return JobResponse(
        id=job.id,
        title=job.title,
        description=job.description,
        customer_name=job.customer_name,
        customer_email=job.customer_email,
        customer_phone=job.customer_phone,
        customer_address=job.customer_address,
        scheduled_date=job.scheduled_date,
        is_recurring=bool(job.is_recurring),
        job_type=job.job_type,
        status=job.status,
        price=job.price,
        estimated_duration=job.estimated_duration,
        notes=job.notes,
        first_time=bool(job.first_time),
        quoted_by=job.quoted_by,
        appointment_id=job.appointment_id,
        ghl_contact_id=job.ghl_contact_id,
        webhook_sent_at=job.webhook_sent_at,
        reminder_status=job.reminder_status,
        created_at=job.created_at,
        updated_at=job.updated_at,
        assigned_users=[u.id for u in job.assignees],
        services=[
            JobServiceResponse(
                id=s.id,
                service_name=s.service_name,
                service_description=s.service_description,
                price=s.price,
                duration=s.duration,
            )
            for s in job.services
        ],
    )


def job_with_notification(db: Session, client: httpx.Client, job: Job) -> JobWithNotification:
    job_id = job.id
    notification = reminder_service.notification_outcome(db, client, job_id)
    return JobWithNotification(job=job_to_response(job_service.get_job(db, job_id)),
                               notification=notification)


@router.post("", response_model=JobWithNotification, status_code=201)
def create_job(req: JobCreate, db: Session = Depends(get_db),
               client: httpx.Client = Depends(get_http_client)):
    data = req.model_dump(exclude={"assigned_users", "services"})
    job = job_service.create_job(
        db,
        data,
        assigned_users=req.assigned_users,
        services=[s.model_dump() for s in req.services],
    )
    return job_with_notification(db, client, job)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    status: str | None = None,
    scheduled_from: str | None = None,
    scheduled_to: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    try:
        scheduled_from = normalize_timestamp(scheduled_from)
        scheduled_to = normalize_timestamp(scheduled_to)
    except ValueError:
        raise HTTPException(status_code=400, detail="scheduled_from/scheduled_to must be ISO-8601")

    jobs, total = job_service.list_jobs(db, status, scheduled_from, scheduled_to, page, per_page)
    return JobListResponse(
        jobs=[job_to_response(j) for j in jobs],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post("/sweep-overdue")
async def sweep_overdue(db: Session = Depends(get_db)):
    return {"updated": job_service.sweep_overdue_jobs(db)}


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str, db: Session = Depends(get_db)):
    return job_to_response(job_service.get_job(db, job_id))


@router.put("/{job_id}", response_model=JobWithNotification)
def update_job(job_id: str, req: JobUpdate, db: Session = Depends(get_db),
               client: httpx.Client = Depends(get_http_client)):
    changes = req.model_dump(exclude_unset=True, exclude={"assigned_users"})
    job = job_service.update_job(db, job_id, changes, assigned_users=req.assigned_users)
    return job_with_notification(db, client, job)


@router.post("/{job_id}/assignments", response_model=JobResponse, status_code=201)
async def assign_user(job_id: str, req: AssignmentCreate, db: Session = Depends(get_db)):
    job = job_service.get_job(db, job_id)
    user = db.query(User).filter(User.id == req.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user not in job.assignees:
        job.assignees.append(user)
        db.commit()
        db.refresh(job)
    return job_to_response(job)
