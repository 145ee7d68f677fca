from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .common import CamelModel, UpdateModel


ReportStatus = Literal["draft", "pending", "sent", "rejected"]


class ReportCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    project_id: Optional[int] = None
    report_type: Optional[str] = "daily"
    email_to: Optional[str] = None
    status: ReportStatus = "draft"
    attachments: List[str] = Field(default_factory=list)


class ReportUpdate(UpdateModel):
    non_nullable = ("title", "status")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    project_id: Optional[int] = None
    report_type: Optional[str] = None
    email_to: Optional[str] = None
    status: Optional[ReportStatus] = None
    attachments: Optional[List[str]] = None


class ReportSendRequest(CamelModel):
    email_to: str

    @field_validator("email_to")
    @classmethod
    def must_look_like_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError("A valid email address is required")
        return v


class ReportResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    user_id: int
    project_id: Optional[int] = None
    report_type: Optional[str] = None
    email_to: Optional[str] = None
    status: str
    attachments: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("attachments", mode="before")
    @classmethod
    def null_attachments(cls, v):
        return v or []
