import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.dependencies import require_service_key
from jobboard.models.user import User
from jobboard.schemas.user import UserCreate, UserResponse
from jobboard.utils.timestamps import format_timestamp, utc_now

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_service_key)],
)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(req: UserCreate, db: Session = Depends(get_db)):
    if req.role not in ("admin", "worker"):
        raise HTTPException(status_code=400, detail="role must be admin or worker")
    user = User(
        id=str(uuid.uuid4()),
        name=req.name,
        email=req.email,
        role=req.role,
        active=req.active,
        created_at=format_timestamp(utc_now()),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.get("", response_model=list[UserResponse])
async def list_users(active: bool | None = None, db: Session = Depends(get_db)):
    query = db.query(User)
    if active is not None:
        query = query.filter(User.active.is_(active))
    return query.order_by(User.name).all()
