from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator


class NotificationOut(BaseModel):
    id: UUID
    type: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NotificationList(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int


class NotificationMark(BaseModel):
    notification_id: Optional[UUID] = None
    mark_all_as_read: bool = False

    @model_validator(mode="after")
    def _target_required(self):
        if self.notification_id is None and not self.mark_all_as_read:
            raise ValueError("Informe notification_id ou mark_all_as_read")
        return self


class AffectedCount(BaseModel):
    count: int
