from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel, UpdateModel


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = "#6366f1"


class ProjectUpdate(UpdateModel):
    non_nullable = ("name",)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = None


class ProjectResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    user_id: int
    created_at: datetime
    updated_at: datetime
