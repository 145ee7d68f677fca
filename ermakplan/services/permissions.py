"""
Ownership policy shared by every resource route.

A user may read or mutate a per-user resource when they own it
(`resource.user_id == user.id`) or when they are root (id 1). Plans and
tasks additionally grant read access to users they were shared with.
"""
from typing import Optional, Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..auth.security import is_root
from ..models.models import Plan, PlanUser, Task, TaskAssignment, User


T = TypeVar("T")


def can_access(resource, user: User) -> bool:
    if is_root(user):
        return True
    return getattr(resource, "user_id", None) == user.id


def is_task_assignee(db: Session, task_id: int, user_id: int) -> bool:
    return db.query(TaskAssignment).filter(
        TaskAssignment.task_id == task_id,
        TaskAssignment.user_id == user_id,
    ).first() is not None


def is_plan_member(db: Session, plan_id: int, user_id: int) -> bool:
    return db.query(PlanUser).filter(
        PlanUser.plan_id == plan_id,
        PlanUser.user_id == user_id,
    ).first() is not None


def can_view_task(db: Session, task: Task, user: User) -> bool:
    return can_access(task, user) or is_task_assignee(db, task.id, user.id)


def can_view_plan(db: Session, plan: Plan, user: User) -> bool:
    return can_access(plan, user) or is_plan_member(db, plan.id, user.id)


def get_or_404(db: Session, model: Type[T], obj_id: int, label: str) -> T:
    row: Optional[T] = db.get(model, obj_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return row


def ensure_access(resource, user: User) -> None:
    if not can_access(resource, user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def get_owned_or_404(db: Session, model: Type[T], obj_id: int, user: User, label: str) -> T:
    """Load a resource for an owner-or-root operation: 404 when missing, 403 when not allowed."""
    row = get_or_404(db, model, obj_id, label)
    ensure_access(row, user)
    return row


def get_task_for_viewer(db: Session, task_id: int, user: User) -> Task:
    task = get_or_404(db, Task, task_id, "Task")
    if not can_view_task(db, task, user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return task


def get_plan_for_viewer(db: Session, plan_id: int, user: User) -> Plan:
    plan = get_or_404(db, Plan, plan_id, "Plan")
    if not can_view_plan(db, plan, user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return plan
