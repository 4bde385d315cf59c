from datetime import datetime
from pydantic import BaseModel, Field


class Parent(BaseModel):
    id: int
    user_id: int
    name: str
    phone: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class ParentUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None


class ChildBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    age: int = Field(ge=0, le=25)
    address: str | None = None
    condition: str | None = None
    notes: str | None = None


class ChildCreate(ChildBase):
    pass


class ChildUpdate(BaseModel):
    name: str | None = None
    age: int | None = Field(default=None, ge=0, le=25)
    address: str | None = None
    condition: str | None = None
    notes: str | None = None


class Child(ChildBase):
    id: int
    parent_id: int
    created_at: datetime

    class Config:
        from_attributes = True
