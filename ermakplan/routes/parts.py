from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import Part, User
from ..schemas.common import MessageResponse
from ..schemas.parts import PartCreate, PartResponse, PartUpdate
from ..services.permissions import get_owned_or_404
from ..services.qr import part_qr_code
from ..services.timestamps import apply_changes, stamp_created


router = APIRouter(prefix="/api/parts", tags=["parts"])

PART_NUMBER_TAKEN = "Part number already exists"


def _part_number_taken(db: Session, part_number: str, exclude_id: Optional[int] = None) -> bool:
    # Uniqueness is global, across every user's parts
    q = db.query(Part.id).filter(Part.part_number == part_number)
    if exclude_id is not None:
        q = q.filter(Part.id != exclude_id)
    return q.first() is not None


def _commit_part(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PART_NUMBER_TAKEN)


@router.get("", response_model=List[PartResponse])
def list_parts(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return db.query(Part).filter(Part.user_id == me.id).order_by(Part.created_at.desc()).all()


@router.post("", response_model=PartResponse, status_code=status.HTTP_201_CREATED)
def create_part(body: PartCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    if _part_number_taken(db, body.part_number):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PART_NUMBER_TAKEN)
    part = Part(**body.model_dump(), user_id=me.id)
    stamp_created(part)
    db.add(part)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PART_NUMBER_TAKEN)
    # The QR payload embeds the generated id, so it is built after the insert
    part.qr_code = part_qr_code(part)
    _commit_part(db)
    db.refresh(part)
    return part


@router.get("/{part_id}", response_model=PartResponse)
def get_part(part_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return get_owned_or_404(db, Part, part_id, me, "Part")


@router.put("/{part_id}", response_model=PartResponse)
def update_part(part_id: int, body: PartUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    part = get_owned_or_404(db, Part, part_id, me, "Part")
    changes = body.changes()
    new_number = changes.get("part_number")
    if new_number is not None and new_number != part.part_number and _part_number_taken(db, new_number, part.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PART_NUMBER_TAKEN)
    regenerate = any(
        field in changes and changes[field] != getattr(part, field)
        for field in ("name", "part_number")
    )
    apply_changes(part, changes)
    if regenerate:
        part.qr_code = part_qr_code(part)
    _commit_part(db)
    db.refresh(part)
    return part


@router.delete("/{part_id}", response_model=MessageResponse)
def delete_part(part_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    part = get_owned_or_404(db, Part, part_id, me, "Part")
    db.delete(part)
    db.commit()
    return MessageResponse(message="Part deleted successfully")
