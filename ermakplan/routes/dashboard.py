from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import Task, User
from ..schemas.tasks import TaskStats


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def task_stats(db: Session, user_id: int) -> TaskStats:
    """Four separate counts over the user's own tasks; they are not taken from a single snapshot."""
    base = db.query(Task).filter(Task.user_id == user_id)
    now = datetime.utcnow()
    return TaskStats(
        total=base.count(),
        completed=base.filter(Task.completed == True).count(),  # noqa: E712
        pending=base.filter(Task.completed == False).count(),  # noqa: E712
        overdue=base.filter(
            Task.completed == False,  # noqa: E712
            Task.due_date.isnot(None),
            Task.due_date < now,
        ).count(),
    )


@router.get("/stats", response_model=TaskStats)
def get_stats(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return task_stats(db, me.id)
