from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import CamelModel, OptionalFloat, UpdateModel


class PartBase(CamelModel):
    image: Optional[str] = None
    length: OptionalFloat = None
    width: OptionalFloat = None
    height: OptionalFloat = None
    weight: OptionalFloat = None
    color: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    technical_drawing: Optional[str] = None


class PartCreate(PartBase):
    name: str = Field(min_length=1, max_length=255)
    part_number: str = Field(min_length=1, max_length=50)

    @field_validator("part_number")
    @classmethod
    def strip_part_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Part number is required")
        return v


class PartUpdate(PartBase, UpdateModel):
    non_nullable = ("name", "part_number")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    part_number: Optional[str] = Field(default=None, min_length=1, max_length=50)

    @field_validator("part_number")
    @classmethod
    def strip_part_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Part number is required")
        return v


class PartResponse(PartBase):
    id: int
    name: str
    part_number: str
    qr_code: Optional[str] = None
    user_id: int
    created_at: datetime
    updated_at: datetime
