import uuid
from datetime import datetime

from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    origin_user_id: uuid.UUID | None = None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
