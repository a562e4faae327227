"""Persistence operations for contact submissions. All values go through bound parameters."""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from inquiry_service.shared.contact.database import MAX_SUBMISSION_ID, ContactSubmission


def insert_submission(
    db: Session,
    *,
    full_name: str,
    email: str,
    event_type: str,
    phone: Optional[str] = None,
    event_date: Optional[date] = None,
    guest_count: Optional[str] = None,
    message: Optional[str] = None,
) -> ContactSubmission:
    submission = ContactSubmission(
        full_name=full_name,
        email=email,
        phone=phone or None,
        event_type=event_type,
        event_date=event_date,
        guest_count=None if guest_count is None else str(guest_count),
        message=message or None,
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def list_submissions(db: Session) -> List[ContactSubmission]:
    """All submissions, newest first."""
    return (
        db.query(ContactSubmission)
        .order_by(ContactSubmission.created_at.desc(), ContactSubmission.id.desc())
        .all()
    )


def delete_submission(db: Session, submission_id: int) -> bool:
    """Delete by id. Returns False when no row matched."""
    if not 1 <= submission_id <= MAX_SUBMISSION_ID:
        # the driver rejects ids the column cannot hold; no such row exists
        return False
    deleted = db.query(ContactSubmission).filter(ContactSubmission.id == submission_id).delete()
    db.commit()
    return deleted > 0
