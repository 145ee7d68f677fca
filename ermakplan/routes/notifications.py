from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, is_root
from ..db import get_db
from ..models.models import Notification, User
from ..schemas.common import MessageResponse
from ..schemas.notifications import NotificationCreate, NotificationResponse, ReadAllResponse
from ..services.events import get_live_hub, publish_notification
from ..services.live_hub import LiveHub
from ..services.notifications import create_notification, mark_all_read
from ..services.permissions import get_owned_or_404, get_plan_for_viewer, get_task_for_viewer


router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
def list_notifications(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return (
        db.query(Notification)
        .filter(Notification.user_id == me.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


@router.get("/unread", response_model=List[NotificationResponse])
def list_unread_notifications(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return (
        db.query(Notification)
        .filter(Notification.user_id == me.id, Notification.is_read == False)  # noqa: E712
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
def post_notification(
    body: NotificationCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    hub: LiveHub = Depends(get_live_hub),
):
    recipient_id = me.id
    if body.user_id is not None and is_root(me):
        if db.get(User, body.user_id) is None:
            raise HTTPException(status_code=404, detail="User not found")
        recipient_id = body.user_id
    # Linked task and plan must be visible to the requester
    if body.related_task_id is not None:
        get_task_for_viewer(db, body.related_task_id, me)
    if body.related_plan_id is not None:
        get_plan_for_viewer(db, body.related_plan_id, me)
    row = create_notification(
        db,
        recipient_id,
        title=body.title,
        message=body.message,
        type=body.type,
        related_task_id=body.related_task_id,
        related_plan_id=body.related_plan_id,
    )
    out = NotificationResponse.model_validate(row)
    publish_notification(hub, out.model_dump(by_alias=True, mode="json"))
    return out


# Declared before /{notification_id} routes so "read-all" is not parsed as an id
@router.patch("/read-all", response_model=ReadAllResponse)
def read_all_notifications(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    updated = mark_all_read(db, me.id)
    return ReadAllResponse(message="All notifications marked as read", updated=updated)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def read_notification(notification_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    row = get_owned_or_404(db, Notification, notification_id, me, "Notification")
    row.is_read = True
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(notification_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    row = get_owned_or_404(db, Notification, notification_id, me, "Notification")
    db.delete(row)
    db.commit()
    return MessageResponse(message="Notification deleted successfully")
