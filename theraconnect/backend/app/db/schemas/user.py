from datetime import datetime
from pydantic import BaseModel, Field


class User(BaseModel):
    id: int
    email: str
    role: str
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    class Config:
        from_attributes = True


class RegisterBase(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=255)
    phone: str | None = None


class ParentRegister(RegisterBase):
    pass


class TherapistRegister(RegisterBase):
    specialization: str = Field(min_length=1, max_length=128)
    experience_years: int = Field(default=0, ge=0)
    base_cost_per_session: float = Field(default=0, ge=0)
