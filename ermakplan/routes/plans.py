from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import Notification, Plan, PlanUser, Task, User
from ..schemas.common import MessageResponse
from ..schemas.plans import PlanCreate, PlanResponse, PlanUpdate, PlanUserResponse
from ..schemas.tasks import AssignUsersRequest
from ..services.notifications import create_notification
from ..services.permissions import get_owned_or_404, get_plan_for_viewer
from ..services.timestamps import apply_changes, stamp_created


router = APIRouter(prefix="/api/plans", tags=["plans"])


def _plan_users(db: Session, plan_id: int) -> List[PlanUser]:
    return (
        db.query(PlanUser)
        .options(joinedload(PlanUser.user))
        .filter(PlanUser.plan_id == plan_id)
        .order_by(PlanUser.assigned_at.asc())
        .all()
    )


@router.get("", response_model=List[PlanResponse])
def list_plans(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return db.query(Plan).filter(Plan.user_id == me.id).order_by(Plan.created_at.desc()).all()


@router.get("/assigned", response_model=List[PlanResponse])
def list_assigned_plans(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return (
        db.query(Plan)
        .join(PlanUser, PlanUser.plan_id == Plan.id)
        .filter(PlanUser.user_id == me.id)
        .order_by(Plan.created_at.desc())
        .all()
    )


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(body: PlanCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    plan = Plan(name=body.name, content=body.content.as_document(), user_id=me.id)
    stamp_created(plan)
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


@router.get("/{plan_id}", response_model=PlanResponse)
def get_plan(plan_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return get_plan_for_viewer(db, plan_id, me)


@router.put("/{plan_id}", response_model=PlanResponse)
def update_plan(plan_id: int, body: PlanUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    plan = get_owned_or_404(db, Plan, plan_id, me, "Plan")
    changes = {}
    if "name" in body.model_fields_set:
        changes["name"] = body.name
    if "content" in body.model_fields_set:
        changes["content"] = body.content.as_document() if body.content is not None else None
    apply_changes(plan, changes)
    db.commit()
    db.refresh(plan)
    return plan


@router.delete("/{plan_id}", response_model=MessageResponse)
def delete_plan(plan_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    plan = get_owned_or_404(db, Plan, plan_id, me, "Plan")
    try:
        # Detach everything that points at the plan before the row goes, all in one transaction
        db.query(Task).filter(Task.plan_id == plan.id).update({Task.plan_id: None}, synchronize_session=False)
        db.query(PlanUser).filter(PlanUser.plan_id == plan.id).delete(synchronize_session=False)
        db.query(Notification).filter(Notification.related_plan_id == plan.id).update(
            {Notification.related_plan_id: None}, synchronize_session=False
        )
        db.delete(plan)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Plan deleted successfully")


# ---------- SHARING ----------
@router.get("/{plan_id}/users", response_model=List[PlanUserResponse])
def list_plan_users(plan_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    plan = get_plan_for_viewer(db, plan_id, me)
    return _plan_users(db, plan.id)


@router.post("/{plan_id}/users", response_model=List[PlanUserResponse])
def add_plan_users(plan_id: int, body: AssignUsersRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    plan = get_owned_or_404(db, Plan, plan_id, me, "Plan")
    wanted = [uid for uid in dict.fromkeys(body.user_ids) if uid != plan.user_id]
    found = {u.id for u in db.query(User).filter(User.id.in_(wanted)).all()} if wanted else set()
    missing = [uid for uid in wanted if uid not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"User not found: {missing[0]}")
    try:
        for uid in wanted:
            if db.get(PlanUser, {"plan_id": plan.id, "user_id": uid}) is not None:
                continue
            db.add(PlanUser(plan_id=plan.id, user_id=uid, assigned_by=me.id, assigned_at=datetime.utcnow()))
            create_notification(
                db,
                uid,
                title="Plan shared with you",
                message=f"You now have access to the plan '{plan.name}'",
                related_plan_id=plan.id,
                commit=False,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return _plan_users(db, plan.id)


@router.delete("/{plan_id}/users/{user_id}", response_model=MessageResponse)
def remove_plan_user(plan_id: int, user_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    plan = get_owned_or_404(db, Plan, plan_id, me, "Plan")
    grant = db.get(PlanUser, {"plan_id": plan.id, "user_id": user_id})
    if grant is None:
        raise HTTPException(status_code=404, detail="Plan user not found")
    db.delete(grant)
    db.commit()
    return MessageResponse(message="User removed from plan")
