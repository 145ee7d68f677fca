from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel


class LoginRequest(CamelModel):
    username: str = Field(min_length=3)
    password: str = Field(min_length=3)


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=3)
    full_name: Optional[str] = None


class UserResponse(CamelModel):
    """Public user shape; never carries the password hash."""
    id: int
    username: str
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None
