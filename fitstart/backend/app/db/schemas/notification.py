from datetime import datetime
from pydantic import BaseModel
from ..models.notification import NotificationType


class Notification(BaseModel):
    id: int
    title: str
    body: str
    type: NotificationType
    data: dict | None = None
    is_read: bool
    read_at: datetime | None = None
    sent_via_push: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True
