from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..logging import get_logger
from ..models.models import Project, Report, User
from ..schemas.common import MessageResponse
from ..schemas.reports import ReportCreate, ReportResponse, ReportSendRequest, ReportUpdate
from ..services.mailer import MailDeliveryError, render_report_email, send_email
from ..services.permissions import can_access, get_owned_or_404
from ..services.timestamps import apply_changes, stamp_created


router = APIRouter(prefix="/api/reports", tags=["reports"])
log = get_logger("ermakplan.reports")


def _check_project(db: Session, me: User, project_id: Optional[int]) -> None:
    if project_id is None:
        return
    project = db.get(Project, project_id)
    if project is None or not can_access(project, me):
        raise HTTPException(status_code=400, detail="Invalid project")


def _check_status(requested: Optional[str], current: Optional[str] = None) -> None:
    # Only the send operation moves a report into `sent`
    if requested == "sent" and current != "sent":
        raise HTTPException(status_code=400, detail="Reports are marked sent by sending them")


@router.get("", response_model=List[ReportResponse])
def list_reports(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return db.query(Report).filter(Report.user_id == me.id).order_by(Report.created_at.desc()).all()


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def create_report(body: ReportCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    _check_project(db, me, body.project_id)
    _check_status(body.status)
    report = Report(**body.model_dump(), user_id=me.id)
    stamp_created(report)
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(report_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return get_owned_or_404(db, Report, report_id, me, "Report")


@router.patch("/{report_id}", response_model=ReportResponse)
def update_report(report_id: int, body: ReportUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    report = get_owned_or_404(db, Report, report_id, me, "Report")
    changes = body.changes()
    _check_project(db, me, changes.get("project_id"))
    _check_status(changes.get("status"), report.status)
    apply_changes(report, changes)
    db.commit()
    db.refresh(report)
    return report


@router.delete("/{report_id}", response_model=MessageResponse)
def delete_report(report_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    report = get_owned_or_404(db, Report, report_id, me, "Report")
    db.delete(report)
    db.commit()
    return MessageResponse(message="Report deleted successfully")


@router.post("/{report_id}/send", response_model=ReportResponse)
def send_report(report_id: int, body: ReportSendRequest, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    """Email the report; only a delivered message moves it to `sent`."""
    report = get_owned_or_404(db, Report, report_id, me, "Report")
    subject, html, text = render_report_email(report)
    try:
        send_email(body.email_to, subject, html=html, text=text)
    except MailDeliveryError as e:
        log.warning("report_email_failed", report_id=report.id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send report email")
    apply_changes(report, {"status": "sent", "email_to": body.email_to})
    db.commit()
    db.refresh(report)
    return report
