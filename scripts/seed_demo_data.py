"""
Seed the local database with the demo account and its starter projects.

Usage:
  python scripts/seed_demo_data.py

Safe to run more than once: nothing is written when any user already exists.
"""

import os

from ermakplan.config import settings
from ermakplan.db import Base, SessionLocal, engine
from ermakplan.services.seed import DEMO_USERNAME, seed_demo_data


def main() -> None:
    if settings.database_url.startswith("sqlite:///./var/"):
        os.makedirs("var", exist_ok=True)
    # Ensure tables exist (safe for SQLite dev)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        if seed_demo_data(session):
            print(f"Seed completed: demo user '{DEMO_USERNAME}' and projects created.")
        else:
            print("Database already has users; nothing seeded.")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
