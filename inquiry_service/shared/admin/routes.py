"""Admin routes for logging in and managing contact submissions."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inquiry_service.shared.admin.schemas import DeleteResponse, LoginResponse, SubmissionListResponse
from inquiry_service.shared.contact.database import get_db
from inquiry_service.shared.contact.schemas import SubmissionOut
from inquiry_service.shared.contact.store import delete_submission, list_submissions
from inquiry_service.shared.security.dependencies import admission

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(admission("admin_login"))],
)
async def admin_login(request: Request):
    """
    Exchange the admin username/password for a token.

    The token is base64("username:password") and is re-checked against the
    configured credentials on every admin call. Send it as `Authorization: Basic <token>`.
    """
    return LoginResponse(
        success=True,
        message="Authentication successful",
        token=request.state.admin_token,
    )


@router.get(
    "/submissions",
    response_model=SubmissionListResponse,
    dependencies=[Depends(admission("admin"))],
)
def admin_list_submissions(db: Session = Depends(get_db)):
    """All submissions, newest first."""
    try:
        rows = list_submissions(db)
    except SQLAlchemyError as e:
        logging.error(f"[Admin] Error fetching submissions: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to fetch submissions"},
        )

    submissions = [SubmissionOut.model_validate(row) for row in rows]
    return SubmissionListResponse(success=True, submissions=submissions, count=len(submissions))


@router.delete(
    "/submissions/{submission_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(admission("admin"))],
)
def admin_delete_submission(submission_id: int, db: Session = Depends(get_db)):
    try:
        deleted = delete_submission(db, submission_id)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"[Admin] Error deleting submission {submission_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to delete submission"},
        )

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Submission not found"},
        )

    logging.info(f"[Admin] Deleted submission {submission_id}")
    return DeleteResponse(success=True, message="Submission deleted")
