from datetime import datetime
from pydantic import BaseModel
from uuid import UUID


class NotificationResponse(BaseModel):
    id: int
    user_id: UUID
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
