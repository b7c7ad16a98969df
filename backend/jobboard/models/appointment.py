from sqlalchemy import JSON, Column, ForeignKey, Text
from jobboard.database import Base


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Text, primary_key=True)
    external_id = Column(Text, nullable=False, unique=True)
    location_id = Column(Text)
    address = Column(Text)
    title = Column(Text, nullable=False)
    calendar_id = Column(Text)
    contact_id = Column(Text)
    group_id = Column(Text)
    appointment_status = Column(Text, default="confirmed")
    assigned_user_id = Column(Text, ForeignKey("users.id", ondelete="SET NULL"))
    assigned_users = Column(JSON, nullable=False, default=list)
    notes = Column(Text)
    source = Column(Text)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
