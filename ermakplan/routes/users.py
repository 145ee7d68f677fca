from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.auth import UserResponse


router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    # Every user is listed so tasks and plans can be shared; password hashes never leave the model
    return db.query(User).order_by(User.id.asc()).all()
