from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import Project, Report, Task, User
from ..schemas.common import MessageResponse
from ..schemas.projects import ProjectCreate, ProjectResponse, ProjectUpdate
from ..services.permissions import get_owned_or_404
from ..services.timestamps import apply_changes, stamp_created


router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=List[ProjectResponse])
def list_projects(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return db.query(Project).filter(Project.user_id == me.id).order_by(Project.created_at.asc()).all()


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(body: ProjectCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    project = Project(**body.model_dump(), user_id=me.id)
    stamp_created(project)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return get_owned_or_404(db, Project, project_id, me, "Project")


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(project_id: int, body: ProjectUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    project = get_owned_or_404(db, Project, project_id, me, "Project")
    apply_changes(project, body.changes())
    db.commit()
    db.refresh(project)
    return project


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(project_id: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    project = get_owned_or_404(db, Project, project_id, me, "Project")
    try:
        # Tasks and reports outlive their project
        db.query(Task).filter(Task.project_id == project.id).update({Task.project_id: None}, synchronize_session=False)
        db.query(Report).filter(Report.project_id == project.id).update({Report.project_id: None}, synchronize_session=False)
        db.delete(project)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Project deleted successfully")
