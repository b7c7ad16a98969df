from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from jobboard.database import Base

JOB_STATUSES = ("pending", "confirmed", "in_progress", "completed", "cancelled", "service_due")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Text, primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text)
    customer_name = Column(Text)
    customer_email = Column(Text)
    customer_phone = Column(Text)
    customer_address = Column(Text)
    scheduled_date = Column(Text)
    is_recurring = Column(Boolean, nullable=False, default=False)
    job_type = Column(Text)
    status = Column(Text, nullable=False, default="pending")
    price = Column(Float)
    estimated_duration = Column(Integer)
    notes = Column(Text)
    first_time = Column(Boolean, nullable=False, default=False)
    quoted_by = Column(Text, ForeignKey("users.id", ondelete="SET NULL"))
    appointment_id = Column(Text)
    ghl_contact_id = Column(Text)
    # Reminder marker and dispatch claim. Written only by reminder_service.
    webhook_sent_at = Column(Text)
    reminder_claimed_at = Column(Text)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    quoted_by_user = relationship("User", foreign_keys=[quoted_by])
    assignees = relationship("User", secondary="job_assignments", back_populates="jobs")
    services = relationship("JobService", back_populates="job", cascade="all, delete-orphan")

    @property
    def reminder_status(self) -> str:
        if self.webhook_sent_at:
            return "sent"
        if self.reminder_claimed_at:
            return "dispatching"
        return "pending"


class JobService(Base):
    __tablename__ = "job_services"

    id = Column(Text, primary_key=True)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    service_name = Column(Text, nullable=False)
    service_description = Column(Text)
    price = Column(Float)
    duration = Column(Integer)
    created_at = Column(Text, nullable=False)

    job = relationship("Job", back_populates="services")
