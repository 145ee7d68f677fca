from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import Reminder, User
from ..schemas.common import MessageResponse
from ..schemas.tasks import ReminderCreate, ReminderResponse, ReminderUpdate
from ..services.permissions import get_owned_or_404, get_task_for_viewer


router = APIRouter(prefix="/api/reminders", tags=["reminders"])


@router.get("", response_model=List[ReminderResponse])
def list_reminders(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return db.query(Reminder).filter(Reminder.user_id == me.id).order_by(Reminder.reminder_date.asc()).all()


@router.post("", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
def create_reminder(body: ReminderCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    # Owner, root or assignee of the task may set a reminder on it
    task = get_task_for_viewer(db, body.task_id, me)
    reminder = Reminder(
        task_id=task.id,
        user_id=me.id,
        reminder_date=body.reminder_date,
        reminder_type=body.reminder_type,
        message=body.message,
        sent=False,
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


@router.patch("/{reminder_id}", response_model=ReminderResponse)
def update_reminder(reminder_id: int, body: ReminderUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    reminder = get_owned_or_404(db, Reminder, reminder_id, me, "Reminder")
    for field, value in body.changes().items():
        setattr(reminder, field, value)
    db.commit()
    db.refresh(reminder)
    return reminder


@router.delete("/{reminder_id}", response_model=MessageResponse)
def delete_reminder(reminder_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    reminder = get_owned_or_404(db, Reminder, reminder_id, me, "Reminder")
    db.delete(reminder)
    db.commit()
    return MessageResponse(message="Reminder deleted successfully")
