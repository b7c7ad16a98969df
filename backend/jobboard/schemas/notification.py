from pydantic import BaseModel


class JobIdRequest(BaseModel):
    jobId: str | None = None


class DispatchFailure(BaseModel):
    job_id: str
    error: str
    webhook_status: int | None = None


class DispatchSummary(BaseModel):
    message: str
    total_jobs: int
    successful: int
    errors: int
    skipped: int
    failures: list[DispatchFailure] = []
    processed_at: str
