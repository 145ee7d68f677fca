"""
In-app notification records.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..models.models import Notification


def create_notification(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    type: str = "info",
    related_task_id: Optional[int] = None,
    related_plan_id: Optional[int] = None,
    commit: bool = True,
) -> Notification:
    """
    Create a notification for `user_id`.

    Args:
        db: Database session
        user_id: Recipient
        title: Short headline
        message: Body text
        type: info|success|warning|error
        related_task_id: Task the notification is about, if any
        related_plan_id: Plan the notification is about, if any
        commit: Commit immediately; pass False to batch with the caller's transaction

    Returns:
        The Notification row
    """
    row = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        is_read=False,
        related_task_id=related_task_id,
        related_plan_id=related_plan_id,
        created_at=datetime.utcnow(),
    )
    db.add(row)
    if commit:
        db.commit()
        db.refresh(row)
    else:
        db.flush()
    return row


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return int(updated or 0)
