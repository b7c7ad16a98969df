from jobboard.models.user import User, job_assignments
from jobboard.models.job import Job, JobService
from jobboard.models.appointment import Appointment
from jobboard.models.quote import AcceptedQuote

__all__ = ["User", "job_assignments", "Job", "JobService", "Appointment", "AcceptedQuote"]
