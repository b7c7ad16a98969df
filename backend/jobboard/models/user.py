from sqlalchemy import Boolean, Column, ForeignKey, Table, Text
from sqlalchemy.orm import relationship
from jobboard.database import Base


job_assignments = Table(
    "job_assignments",
    Base.metadata,
    Column("job_id", Text, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Text, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text)
    role = Column(Text, nullable=False, default="worker")
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(Text, nullable=False)

    jobs = relationship("Job", secondary=job_assignments, back_populates="assignees")
