"""
Exam Cell Question Bank - Submission Store
Database-backed sink for validated trees, plus the review queries.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from src.database.models import QuestionBankSubmission
from src.question_bank import review
from src.question_bank.errors import ValidationError
from src.question_bank.models import QuestionBankTree

logger = logging.getLogger(__name__)


class DatabaseSubmissionSink:
    """Stores each submitted tree as a pending QuestionBankSubmission row."""

    def __init__(self, db: Session):
        self.db = db

    def submit(self, tree: QuestionBankTree, submitter: str) -> str:
        selection = tree.selection
        row = QuestionBankSubmission(
            submitter=submitter,
            department_id=selection.department_id if selection else None,
            course_id=selection.course_id if selection else None,
            program_id=selection.program_id if selection else None,
            regulation_id=selection.regulation_id if selection else None,
            status=review.ReviewStatus.PENDING.value,
            tree=tree.to_dict(),
            module_count=len(tree.modules),
            question_count=tree.question_total,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Stored submission {row.id} from {submitter}")
        return row.id


def get_submission(db: Session, submission_id: str) -> Optional[QuestionBankSubmission]:
    return db.query(QuestionBankSubmission).filter(QuestionBankSubmission.id == submission_id).first()


def list_submissions(
    db: Session,
    submitter: Optional[str] = None,
    status: Optional[str] = None
) -> List[QuestionBankSubmission]:
    """Newest first. submitter=None lists every author."""
    query = db.query(QuestionBankSubmission)
    if submitter is not None:
        query = query.filter(QuestionBankSubmission.submitter == submitter)
    if status is not None:
        query = query.filter(QuestionBankSubmission.status == status)
    return query.order_by(QuestionBankSubmission.created_at.desc()).all()


def record_review(
    db: Session,
    submission: QuestionBankSubmission,
    decision: str,
    reviewer: str,
    comment: Optional[str] = None
) -> QuestionBankSubmission:
    """
    Apply an accept/reject decision and persist it.

    Raises:
        ValidationError: Unknown decision, missing reject comment, or already reviewed
    """
    if decision == review.ReviewStatus.ACCEPTED.value:
        review.accept(submission, reviewer, comment)
    elif decision == review.ReviewStatus.REJECTED.value:
        review.reject(submission, reviewer, comment)
    else:
        raise ValidationError(f"Unknown review decision: {decision}")

    db.commit()
    db.refresh(submission)
    logger.info(f"Submission {submission.id} {submission.status} by {reviewer}")
    return submission
