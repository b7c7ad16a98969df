from typing import Any

from pydantic import BaseModel


class QuoteWebhookRequest(BaseModel):
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    customer_address: str | None = None
    quoted_by: Any = None
    jobs_selected: list[Any] | None = None
    first_time: bool | None = None
    scheduled_date: str | None = None
    ghl_contact_id: str | None = None
    appointment_id: str | None = None


class QuoteResponse(BaseModel):
    id: str
    customer_name: str
    customer_phone: str | None
    customer_email: str | None
    customer_address: str | None
    quoted_by: str | None
    jobs_selected: list[Any]
    first_time: bool
    scheduled_date: str | None
    ghl_contact_id: str | None
    appointment_id: str | None
    status: str
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
