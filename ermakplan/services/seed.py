from sqlalchemy.orm import Session

from ..auth.security import get_password_hash
from ..models.models import Project, User
from .timestamps import stamp_created


DEMO_USERNAME = "ermak"
DEMO_PASSWORD = "ermak"

DEMO_PROJECTS = [
    ("Work Tasks", "Professional tasks and deadlines", "#6366f1"),
    ("Personal", "Personal errands and tasks", "#10b981"),
    ("Learning", "Educational goals and courses", "#f59e0b"),
]


def seed_demo_data(db: Session) -> bool:
    """Create the demo root account and its projects on an empty database. Returns True when seeded."""
    if db.query(User).count() > 0:
        return False
    user = User(username=DEMO_USERNAME, password_hash=get_password_hash(DEMO_PASSWORD), full_name="Demo User")
    db.add(user)
    db.flush()
    for name, description, color in DEMO_PROJECTS:
        project = Project(name=name, description=description, color=color, user_id=user.id)
        stamp_created(project)
        db.add(project)
    db.commit()
    return True
