from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from ..auth.security import get_current_user, require_root
from ..db import get_db
from ..models.models import LocationReport, User
from ..schemas.common import MessageResponse
from ..schemas.location_reports import LocationReportCreate, LocationReportResponse, LocationReportUpdate
from ..services.events import get_live_hub, publish_location_report
from ..services.live_hub import LiveHub
from ..services.permissions import get_owned_or_404
from ..services.timestamps import apply_changes, stamp_created


router = APIRouter(prefix="/api/location-reports", tags=["location-reports"])
admin_router = APIRouter(prefix="/api/admin/location-reports", tags=["location-reports"])


def _with_user(db: Session, report_id: int) -> LocationReport:
    return (
        db.query(LocationReport)
        .options(joinedload(LocationReport.user))
        .filter(LocationReport.id == report_id)
        .one()
    )


def _event_payload(report: LocationReport) -> dict:
    return LocationReportResponse.model_validate(report).model_dump(by_alias=True, mode="json")


def _utc_day_bounds(now: Optional[datetime] = None):
    now = now or datetime.utcnow()
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


@router.get("", response_model=List[LocationReportResponse])
def list_location_reports(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return (
        db.query(LocationReport)
        .filter(LocationReport.user_id == me.id)
        .order_by(LocationReport.report_date.desc(), LocationReport.id.desc())
        .all()
    )


@router.get("/today", response_model=Optional[LocationReportResponse])
def get_today_location_report(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    start, end = _utc_day_bounds()
    return (
        db.query(LocationReport)
        .filter(
            LocationReport.user_id == me.id,
            LocationReport.report_date >= start,
            LocationReport.report_date < end,
        )
        .order_by(LocationReport.report_date.desc(), LocationReport.id.desc())
        .first()
    )


@router.post("", response_model=LocationReportResponse, status_code=status.HTTP_201_CREATED)
def create_location_report(
    body: LocationReportCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    hub: LiveHub = Depends(get_live_hub),
):
    data = body.model_dump()
    if data.get("report_date") is None:
        data["report_date"] = datetime.utcnow()
    report = LocationReport(**data, user_id=me.id)
    stamp_created(report)
    db.add(report)
    db.commit()
    report = _with_user(db, report.id)
    publish_location_report(hub, "create", _event_payload(report))
    return report


@router.put("/{report_id}", response_model=LocationReportResponse)
def update_location_report(
    report_id: int,
    body: LocationReportUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    hub: LiveHub = Depends(get_live_hub),
):
    report = get_owned_or_404(db, LocationReport, report_id, me, "Location report")
    apply_changes(report, body.changes())
    db.commit()
    report = _with_user(db, report.id)
    publish_location_report(hub, "update", _event_payload(report))
    return report


@router.delete("/{report_id}", response_model=MessageResponse)
def delete_location_report(
    report_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    hub: LiveHub = Depends(get_live_hub),
):
    report = get_owned_or_404(db, LocationReport, report_id, me, "Location report")
    db.delete(report)
    db.commit()
    publish_location_report(hub, "delete", {"id": report_id})
    return MessageResponse(message="Location report deleted successfully")


@admin_router.get("", response_model=List[LocationReportResponse])
def list_all_location_reports(db: Session = Depends(get_db), _root: User = Depends(require_root)):
    return (
        db.query(LocationReport)
        .options(joinedload(LocationReport.user))
        .order_by(LocationReport.report_date.desc(), LocationReport.id.desc())
        .all()
    )
