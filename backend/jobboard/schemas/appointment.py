from pydantic import BaseModel


class AppointmentSyncRequest(BaseModel):
    # Kept as a raw mapping: missing fields are reported as a 400 by the service.
    appointment: dict | None = None
    locationId: str | None = None


class AppointmentSyncResponse(BaseModel):
    success: bool
    message: str
    id: str
    external_id: str
