from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..logging import get_logger
from ..models.models import User
from ..schemas.auth import LoginRequest, RegisterRequest, UserResponse
from ..schemas.common import MessageResponse
from .security import (
    clear_session_cookie,
    create_session,
    destroy_session,
    get_password_hash,
    resolve_session,
    session_cookie,
    set_session_cookie,
    verify_password,
)


router = APIRouter(prefix="/api/auth", tags=["auth"])
log = get_logger("ermakplan.auth")


@router.post("/login", response_model=UserResponse)
def login(req: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == req.username).first()
    if not user or not verify_password(req.password, user.password_hash):
        log.info("login_failed", username=req.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    session_row = create_session(db, user)
    set_session_cookie(response, session_row.token)
    log.info("login_succeeded", user_id=user.id)
    return user


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    if db.query(User).filter(User.username == req.username).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    user = User(
        username=req.username,
        password_hash=get_password_hash(req.password),
        full_name=req.full_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    session_row = create_session(db, user)
    set_session_cookie(response, session_row.token)
    log.info("user_registered", user_id=user.id)
    return user


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, token: Optional[str] = Depends(session_cookie), db: Session = Depends(get_db)):
    destroy_session(db, token)
    clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def me(token: Optional[str] = Depends(session_cookie), db: Session = Depends(get_db)):
    session_row = resolve_session(db, token)
    if session_row is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user = db.query(User).filter(User.id == session_row.user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
