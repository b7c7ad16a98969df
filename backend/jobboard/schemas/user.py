from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str | None = None
    role: str = "worker"
    active: bool = True


class UserResponse(BaseModel):
    id: str
    name: str
    email: str | None
    role: str
    active: bool
    created_at: str

    model_config = {"from_attributes": True}
