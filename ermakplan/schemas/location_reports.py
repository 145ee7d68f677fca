from datetime import datetime
from typing import Optional

from pydantic import Field

from .auth import UserResponse
from .common import CamelModel, OptionalFloat, UpdateModel, UtcDateTime


class LocationReportCreate(CamelModel):
    location: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    report_date: Optional[UtcDateTime] = None
    gps_lat: OptionalFloat = None
    gps_long: OptionalFloat = None


class LocationReportUpdate(UpdateModel):
    non_nullable = ("location", "report_date")

    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    report_date: Optional[UtcDateTime] = None
    gps_lat: OptionalFloat = None
    gps_long: OptionalFloat = None


class LocationReportResponse(CamelModel):
    id: int
    user_id: int
    report_date: datetime
    location: str
    description: Optional[str] = None
    gps_lat: Optional[float] = None
    gps_long: Optional[float] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserResponse] = None
