from pydantic import BaseModel, Field, field_validator

from jobboard.models.job import JOB_STATUSES
from jobboard.utils.timestamps import normalize_timestamp


class JobServiceIn(BaseModel):
    service_name: str
    service_description: str | None = None
    price: float | None = None
    duration: int | None = None


class JobServiceResponse(JobServiceIn):
    id: str


class _JobFieldsMixin(BaseModel):
    @field_validator("scheduled_date", mode="before", check_fields=False)
    @classmethod
    def _normalize_scheduled_date(cls, value):
        if isinstance(value, str):
            return normalize_timestamp(value)
        return value

    @field_validator("status", check_fields=False)
    @classmethod
    def _known_status(cls, value):
        if value is not None and value not in JOB_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(JOB_STATUSES)}")
        return value


class JobCreate(_JobFieldsMixin):
    title: str = Field(min_length=1)
    description: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_address: str | None = None
    scheduled_date: str | None = None
    is_recurring: bool = False
    job_type: str | None = None
    status: str = "pending"
    price: float | None = None
    estimated_duration: int | None = None
    notes: str | None = None
    first_time: bool = False
    quoted_by: str | None = None
    appointment_id: str | None = None
    ghl_contact_id: str | None = None
    assigned_users: list[str] = []
    services: list[JobServiceIn] = []


class JobUpdate(_JobFieldsMixin):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_address: str | None = None
    scheduled_date: str | None = None
    is_recurring: bool | None = None
    job_type: str | None = None
    status: str | None = None
    price: float | None = None
    estimated_duration: int | None = None
    notes: str | None = None
    first_time: bool | None = None
    quoted_by: str | None = None
    assigned_users: list[str] | None = None

    # Omit these to leave them unchanged; the columns are NOT NULL.
    @field_validator("title", "status", "is_recurring", "first_time")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class JobResponse(BaseModel):
    id: str
    title: str
    description: str | None
    customer_name: str | None
    customer_email: str | None
    customer_phone: str | None
    customer_address: str | None
    scheduled_date: str | None
    is_recurring: bool
    job_type: str | None
    status: str
    price: float | None
    estimated_duration: int | None
    notes: str | None
    first_time: bool
    quoted_by: str | None
    appointment_id: str | None
    ghl_contact_id: str | None
    webhook_sent_at: str | None
    reminder_status: str
    created_at: str
    updated_at: str
    assigned_users: list[str] = []
    services: list[JobServiceResponse] = []


class JobWithNotification(BaseModel):
    job: JobResponse
    notification: dict


class JobListResponse(BaseModel):
    jobs: list[JobResponse]
    total: int
    page: int
    per_page: int


class AssignmentCreate(BaseModel):
    user_id: str
