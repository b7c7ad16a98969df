from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import require_service_key
from jobboard.schemas.appointment import AppointmentSyncRequest, AppointmentSyncResponse
from jobboard.services.appointment_service import sync_appointment

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
    dependencies=[Depends(require_service_key)],
)


@router.post("/sync", response_model=AppointmentSyncResponse)
async def sync(req: AppointmentSyncRequest, db: Session = Depends(get_db)):
    return sync_appointment(db, req.appointment, req.locationId)
