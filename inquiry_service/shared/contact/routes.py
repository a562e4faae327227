"""Contact routes: accept an event inquiry, store it and email a confirmation."""

import logging
import time

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inquiry_service.shared.contact.database import get_db
from inquiry_service.shared.contact.schemas import ContactRequest, ContactResponse, SubmissionOut
from inquiry_service.shared.contact.store import insert_submission
from inquiry_service.shared.security.dependencies import admission

router = APIRouter(prefix="/api/contact", tags=["contact"])


def get_admitted_contact(request: Request) -> ContactRequest:
    """The payload validated and sanitized by the contact admission chain."""
    return request.state.contact


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(admission("contact"))],
)
def submit_contact_form(
    request: Request,
    background_tasks: BackgroundTasks,
    contact_data: ContactRequest = Depends(get_admitted_contact),
    db: Session = Depends(get_db),
):
    """
    Store a contact-form inquiry.

    By the time this runs the request has passed size, injection, reputation and
    rate-limit checks, the honeypot, and field validation. The confirmation
    email is sent after the response; its outcome never changes the status code.
    """
    try:
        t0 = time.perf_counter()
        submission = insert_submission(
            db,
            full_name=contact_data.full_name,
            email=contact_data.email,
            phone=contact_data.phone,
            event_type=contact_data.event_type,
            event_date=contact_data.event_date,
            guest_count=contact_data.guest_count,
            message=contact_data.message,
        )
        elapsed_ms = (time.perf_counter() - t0) * 1000
        logging.debug(f"[contact] Insert completed in {elapsed_ms:.1f}ms, ID: {submission.id}")
        stored = SubmissionOut.model_validate(submission)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"[contact] Insert error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Server error", "message": "Could not save your inquiry. Please try again later."},
        )

    background_tasks.add_task(request.app.state.notifier.notify, stored)

    return ContactResponse(success=True, id=stored.id)
