from datetime import datetime, timedelta


def stamp_created(row) -> datetime:
    """Set created_at and updated_at to the same instant."""
    now = datetime.utcnow()
    row.created_at = now
    row.updated_at = now
    return now


def touch(row) -> datetime:
    """Advance updated_at, strictly past its previous value even on a coarse clock."""
    now = datetime.utcnow()
    previous = getattr(row, "updated_at", None)
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    row.updated_at = now
    return now


def apply_changes(row, changes: dict) -> None:
    for field, value in changes.items():
        setattr(row, field, value)
    touch(row)
