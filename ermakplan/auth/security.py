import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Response, status
from fastapi.security import APIKeyCookie
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..models.models import ROOT_USER_ID, User, UserSession


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
session_cookie = APIKeyCookie(name=settings.session_cookie_name, auto_error=False)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # Unrecognised hash format
        return False


def is_root(user: User) -> bool:
    return user.id == ROOT_USER_ID


def create_session(db: Session, user: User) -> UserSession:
    now = datetime.utcnow()
    # Expired sessions of any user are pruned whenever a new one is issued
    db.query(UserSession).filter(UserSession.expires_at <= now).delete(synchronize_session=False)
    row = UserSession(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        created_at=now,
        expires_at=now + timedelta(seconds=settings.session_ttl_seconds),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def resolve_session(db: Session, token: Optional[str]) -> Optional[UserSession]:
    """Return the live session for `token`; expired rows are removed on sight."""
    if not token:
        return None
    row = db.query(UserSession).filter(UserSession.token == token).first()
    if row is None:
        return None
    if row.expires_at <= datetime.utcnow():
        db.delete(row)
        db.commit()
        return None
    return row


def destroy_session(db: Session, token: Optional[str]) -> None:
    if not token:
        return
    db.query(UserSession).filter(UserSession.token == token).delete(synchronize_session=False)
    db.commit()


def get_current_user(
    token: Optional[str] = Depends(session_cookie),
    db: Session = Depends(get_db),
) -> User:
    session_row = resolve_session(db, token)
    if session_row is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = db.query(User).filter(User.id == session_row.user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def require_root(user: User = Depends(get_current_user)) -> User:
    if not is_root(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return user
