from sqlalchemy import JSON, Boolean, Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from jobboard.database import Base


class AcceptedQuote(Base):
    __tablename__ = "accepted_quotes"

    id = Column(Text, primary_key=True)
    customer_name = Column(Text, nullable=False)
    customer_phone = Column(Text)
    customer_email = Column(Text)
    customer_address = Column(Text)
    quoted_by = Column(Text, ForeignKey("users.id", ondelete="SET NULL"))
    jobs_selected = Column(JSON, nullable=False)
    first_time = Column(Boolean, nullable=False, default=False)
    scheduled_date = Column(Text)
    ghl_contact_id = Column(Text)
    appointment_id = Column(Text)
    status = Column(Text, nullable=False, default="pending")
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    quoted_by_user = relationship("User")
