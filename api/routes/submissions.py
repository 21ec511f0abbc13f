"""
Exam Cell Question Bank - Submission Routes
Listing, exam cell review and question paper export for submitted banks.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from api.auth.deps import CurrentUser, get_current_user
from api.auth.permissions import Permission, has_permission, require_permission
from api.limiter import limiter
from api.models import (
    PaperExportRequest,
    ReviewRequest,
    SubmissionDetail,
    SubmissionListResponse,
    SubmissionSummary,
)
from src.database.db import get_db
from src.database.models import QuestionBankSubmission
from src.database.submissions import get_submission, list_submissions, record_review
from src.paper.pdf_generator import QuestionPaperPDFGenerator
from src.question_bank.models import QuestionBankTree
from src.question_bank.paper import PaperHeader, build_paper
from src.question_bank.review import ReviewStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/question-banks", tags=["Question Bank Review"])


def _visible_submission(db: Session, submission_id: str, current_user: CurrentUser) -> QuestionBankSubmission:
    """Faculty only see their own submissions; the exam cell sees all."""
    submission = get_submission(db, submission_id)
    if submission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question bank not found")
    if submission.submitter != current_user.id and not has_permission(current_user, Permission.VIEW_ALL_SUBMISSIONS):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question bank not found")
    return submission


@router.get("", response_model=SubmissionListResponse)
@require_permission(Permission.VIEW_OWN_SUBMISSIONS)
async def list_question_banks(
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List submitted question banks, newest first.

    Args:
        status_filter: pending | accepted | rejected
    """
    if status_filter is not None and status_filter not in {s.value for s in ReviewStatus}:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown status: {status_filter}")

    submitter = None if has_permission(current_user, Permission.VIEW_ALL_SUBMISSIONS) else current_user.id
    rows = list_submissions(db, submitter=submitter, status=status_filter)
    return SubmissionListResponse(
        submissions=[SubmissionSummary.model_validate(row) for row in rows],
        total=len(rows),
    )


@router.get("/{submission_id}", response_model=SubmissionDetail)
@require_permission(Permission.VIEW_OWN_SUBMISSIONS)
async def get_question_bank(
    submission_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    submission = _visible_submission(db, submission_id, current_user)
    return SubmissionDetail.model_validate(submission)


@router.post("/{submission_id}/accept", response_model=SubmissionSummary)
@require_permission(Permission.REVIEW_SUBMISSIONS)
async def accept_question_bank(
    submission_id: str,
    body: Optional[ReviewRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    submission = _visible_submission(db, submission_id, current_user)
    comment = body.comment if body else None
    record_review(db, submission, ReviewStatus.ACCEPTED.value, current_user.id, comment)
    return SubmissionSummary.model_validate(submission)


@router.post("/{submission_id}/reject", response_model=SubmissionSummary)
@require_permission(Permission.REVIEW_SUBMISSIONS)
async def reject_question_bank(
    submission_id: str,
    body: ReviewRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reject with feedback for the author. A comment is required."""
    submission = _visible_submission(db, submission_id, current_user)
    record_review(db, submission, ReviewStatus.REJECTED.value, current_user.id, body.comment)
    return SubmissionSummary.model_validate(submission)


@router.post("/{submission_id}/paper")
@limiter.limit("10/minute")
@require_permission(Permission.EXPORT_QUESTION_PAPER)
async def export_question_paper(
    request: Request,
    submission_id: str,
    body: Optional[PaperExportRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Render the submitted bank as a PDF question paper."""
    submission = _visible_submission(db, submission_id, current_user)
    body = body or PaperExportRequest()

    tree = QuestionBankTree.from_dict(submission.tree)
    paper = build_paper(tree, section_limits=body.section_limits or None)
    header = PaperHeader(
        course_code=body.course_code,
        course_title=body.course_title,
        credits=body.credits,
        year_of_study=body.year_of_study,
        semester=body.semester,
        academic_year=body.academic_year,
        regulation=body.regulation,
        program=body.program,
        faculty=body.faculty,
    )

    pdf = QuestionPaperPDFGenerator().render(paper, header)
    logger.info(f"Question paper exported for {submission_id} by {current_user.id}")

    filename = f"question_bank_{submission_id[:8]}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
