from pydantic import BaseModel


class InvoiceAnalyticsRequest(BaseModel):
    granularity: str = "monthly"
    start_date: str | None = None
    end_date: str | None = None
    status: str | None = None
    location_id: str | None = None
    customer_id: str | None = None
    currency: str | None = None
    group_by: str | None = None
