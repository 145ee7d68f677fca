from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field, field_validator

from .auth import UserResponse
from .common import CamelModel, UpdateModel


class BackgroundImage(CamelModel):
    id: Optional[Union[str, int]] = None
    url: str
    x: float = 0
    y: float = 0
    width: float
    height: float


class PlanPoint(CamelModel):
    id: Union[str, int]
    x: float
    y: float
    notes: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    parts: List[int] = Field(default_factory=list)  # referenced part ids; not enforced relationally


class PlanContent(CamelModel):
    background_images: List[BackgroundImage] = Field(default_factory=list)
    points: List[PlanPoint] = Field(default_factory=list)

    def as_document(self) -> dict:
        return self.model_dump(by_alias=True)


class PlanCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    content: PlanContent = Field(default_factory=PlanContent)


class PlanUpdate(UpdateModel):
    non_nullable = ("name",)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[PlanContent] = None


class PlanResponse(CamelModel):
    id: int
    name: str
    user_id: int
    content: PlanContent = Field(default_factory=PlanContent)
    created_at: datetime
    updated_at: datetime

    @field_validator("content", mode="before")
    @classmethod
    def empty_content(cls, v):
        return v or {}


class PlanUserResponse(CamelModel):
    plan_id: int
    user_id: int
    assigned_by: Optional[int] = None
    assigned_at: Optional[datetime] = None
    user: Optional[UserResponse] = None
