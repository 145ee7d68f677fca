from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from .auth import UserResponse
from .common import CamelModel, UpdateModel, UtcDateTime


TaskStatus = Literal["pending", "in-progress", "in_progress", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]
AssignmentStatus = Literal["pending", "in_progress", "completed"]
ReminderType = Literal["email", "notification", "both"]


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    project_id: Optional[int] = None
    plan_id: Optional[int] = None
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: Optional[UtcDateTime] = None
    completed: bool = False


class TaskUpdate(UpdateModel):
    non_nullable = ("title", "status", "priority", "completed")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    project_id: Optional[int] = None
    plan_id: Optional[int] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[UtcDateTime] = None
    completed: Optional[bool] = None


class TaskResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    user_id: int
    project_id: Optional[int] = None
    plan_id: Optional[int] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    completed: bool
    created_at: datetime
    updated_at: datetime


class AssignUsersRequest(CamelModel):
    user_ids: List[int] = Field(min_length=1)


class AssignmentStatusUpdate(CamelModel):
    status: AssignmentStatus
    notes: Optional[str] = None


class AssignmentResponse(CamelModel):
    task_id: int
    user_id: int
    status: str
    assigned_by: Optional[int] = None
    assigned_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    user: Optional[UserResponse] = None


class AssignedTaskResponse(TaskResponse):
    assignment: AssignmentResponse


class TaskStats(CamelModel):
    total: int
    completed: int
    pending: int
    overdue: int


class ReminderCreate(CamelModel):
    task_id: int
    reminder_date: UtcDateTime
    reminder_type: ReminderType = "email"
    message: Optional[str] = None


class ReminderUpdate(UpdateModel):
    non_nullable = ("reminder_date", "reminder_type", "sent")

    reminder_date: Optional[UtcDateTime] = None
    reminder_type: Optional[ReminderType] = None
    message: Optional[str] = None
    sent: Optional[bool] = None


class ReminderResponse(CamelModel):
    id: int
    task_id: int
    user_id: int
    reminder_date: datetime
    reminder_type: str
    message: Optional[str] = None
    sent: bool
    created_at: Optional[datetime] = None
