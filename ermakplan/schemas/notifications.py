from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .common import CamelModel


NotificationType = Literal["info", "success", "warning", "error"]


class NotificationCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: NotificationType = "info"
    user_id: Optional[int] = None  # honoured only for root
    related_task_id: Optional[int] = None
    related_plan_id: Optional[int] = None


class NotificationResponse(CamelModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    is_read: bool
    related_task_id: Optional[int] = None
    related_plan_id: Optional[int] = None
    created_at: datetime


class ReadAllResponse(CamelModel):
    message: str
    updated: int
