from datetime import datetime
from pydantic import BaseModel


class Notification(BaseModel):
    id: int
    type: str
    message: str
    status: str
    is_read: bool
    send_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True
