from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..auth.security import get_current_user, is_root
from ..db import get_db
from ..models.models import Notification, Plan, Project, Reminder, Task, TaskAssignment, User
from ..schemas.common import MessageResponse
from ..schemas.tasks import (
    AssignedTaskResponse,
    AssignmentResponse,
    AssignmentStatusUpdate,
    AssignUsersRequest,
    ReminderResponse,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)
from ..services.notifications import create_notification
from ..services.permissions import (
    can_access,
    can_view_plan,
    get_owned_or_404,
    get_task_for_viewer,
)
from ..services.timestamps import apply_changes, stamp_created


router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _check_links(db: Session, me: User, project_id: Optional[int], plan_id: Optional[int]) -> None:
    if project_id is not None:
        project = db.get(Project, project_id)
        if project is None or not can_access(project, me):
            raise HTTPException(status_code=400, detail="Invalid project")
    if plan_id is not None:
        plan = db.get(Plan, plan_id)
        if plan is None or not can_view_plan(db, plan, me):
            raise HTTPException(status_code=400, detail="Invalid plan")


def _assignment(db: Session, task_id: int, user_id: int) -> Optional[TaskAssignment]:
    return db.get(TaskAssignment, {"task_id": task_id, "user_id": user_id})


@router.get("", response_model=List[TaskResponse])
def list_tasks(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return db.query(Task).filter(Task.user_id == me.id).order_by(Task.created_at.desc()).all()


@router.get("/assigned", response_model=List[AssignedTaskResponse])
def list_assigned_tasks(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    rows = (
        db.query(TaskAssignment)
        .options(joinedload(TaskAssignment.task))
        .filter(TaskAssignment.user_id == me.id)
        .order_by(TaskAssignment.assigned_at.desc())
        .all()
    )
    result = []
    for a in rows:
        payload = TaskResponse.model_validate(a.task).model_dump()
        payload["assignment"] = AssignmentResponse.model_validate(a).model_dump()
        result.append(AssignedTaskResponse.model_validate(payload))
    return result


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(body: TaskCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    _check_links(db, me, body.project_id, body.plan_id)
    task = Task(**body.model_dump(), user_id=me.id)
    stamp_created(task)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return get_task_for_viewer(db, task_id, me)


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(task_id: int, body: TaskUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    task = get_owned_or_404(db, Task, task_id, me, "Task")
    changes = body.changes()
    _check_links(db, me, changes.get("project_id"), changes.get("plan_id"))
    apply_changes(task, changes)
    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(task_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    task = get_owned_or_404(db, Task, task_id, me, "Task")
    try:
        db.query(TaskAssignment).filter(TaskAssignment.task_id == task.id).delete(synchronize_session=False)
        db.query(Reminder).filter(Reminder.task_id == task.id).delete(synchronize_session=False)
        db.query(Notification).filter(Notification.related_task_id == task.id).update(
            {Notification.related_task_id: None}, synchronize_session=False
        )
        db.delete(task)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Task deleted successfully")


# ---------- ASSIGNMENTS ----------
def _list_assignments(task_id: int, db: Session, me: User) -> List[TaskAssignment]:
    task = get_task_for_viewer(db, task_id, me)
    return (
        db.query(TaskAssignment)
        .options(joinedload(TaskAssignment.user))
        .filter(TaskAssignment.task_id == task.id)
        .order_by(TaskAssignment.assigned_at.asc())
        .all()
    )


def _assign_users(task_id: int, body: AssignUsersRequest, db: Session, me: User) -> List[TaskAssignment]:
    """Idempotent on the set of assignees: existing (task, user) rows are kept as they are."""
    task = get_owned_or_404(db, Task, task_id, me, "Task")
    wanted = [uid for uid in dict.fromkeys(body.user_ids) if uid != task.user_id]
    found = {u.id for u in db.query(User).filter(User.id.in_(wanted)).all()} if wanted else set()
    missing = [uid for uid in wanted if uid not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"User not found: {missing[0]}")
    try:
        for uid in wanted:
            if _assignment(db, task.id, uid) is not None:
                continue
            db.add(TaskAssignment(
                task_id=task.id,
                user_id=uid,
                status="pending",
                assigned_by=me.id,
                assigned_at=datetime.utcnow(),
            ))
            create_notification(
                db,
                uid,
                title="New task assigned",
                message=f"You have been assigned to the task '{task.title}'",
                related_task_id=task.id,
                commit=False,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return _list_assignments(task.id, db, me)


@router.get("/{task_id}/assignments", response_model=List[AssignmentResponse])
def list_assignments(task_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _list_assignments(task_id, db, me)


@router.get("/{task_id}/users", response_model=List[AssignmentResponse])
def list_task_users(task_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _list_assignments(task_id, db, me)


@router.post("/{task_id}/assignments", response_model=List[AssignmentResponse])
def assign_task(task_id: int, body: AssignUsersRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _assign_users(task_id, body, db, me)


@router.post("/{task_id}/users", response_model=List[AssignmentResponse])
def assign_task_users(task_id: int, body: AssignUsersRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _assign_users(task_id, body, db, me)


@router.post("/{task_id}/assign", response_model=List[AssignmentResponse])
def assign_task_legacy(task_id: int, body: AssignUsersRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return _assign_users(task_id, body, db, me)


@router.delete("/{task_id}/users/{user_id}", response_model=MessageResponse)
def unassign_user(task_id: int, user_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    task = get_owned_or_404(db, Task, task_id, me, "Task")
    row = _assignment(db, task.id, user_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Assignment not found")
    db.delete(row)
    db.commit()
    return MessageResponse(message="User removed from task")


@router.patch("/{task_id}/status", response_model=AssignmentResponse)
def update_assignment_status(
    task_id: int,
    body: AssignmentStatusUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    """An assignee moves their own assignment along; the task's own fields are never touched."""
    task = db.get(Task, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    row = _assignment(db, task.id, me.id)
    if row is None:
        raise HTTPException(status_code=403, detail="You are not assigned to this task")
    row.status = body.status
    if body.notes is not None:
        row.notes = body.notes
    if body.status == "completed":
        row.completed_at = row.completed_at or datetime.utcnow()
    else:
        row.completed_at = None
    db.commit()
    db.refresh(row)
    return row


# ---------- REMINDERS ----------
@router.get("/{task_id}/reminders", response_model=List[ReminderResponse])
def list_task_reminders(task_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    task = get_task_for_viewer(db, task_id, me)
    query = db.query(Reminder).filter(Reminder.task_id == task.id)
    if not is_root(me):
        query = query.filter(Reminder.user_id == me.id)
    return query.order_by(Reminder.reminder_date.asc()).all()
