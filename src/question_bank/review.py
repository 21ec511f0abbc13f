"""
Exam Cell Question Bank - Review Workflow
pending -> accepted | rejected, decided by the exam cell.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .errors import ValidationError


class ReviewStatus(str, Enum):
    """Submission review states"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def _ensure_pending(submission: Any) -> None:
    if submission.status != ReviewStatus.PENDING.value:
        raise ValidationError(f"Question bank has already been {submission.status}")


def accept(submission: Any, reviewer: str, comment: Optional[str] = None) -> Any:
    """Mark a pending submission accepted. The comment is optional."""
    _ensure_pending(submission)
    submission.status = ReviewStatus.ACCEPTED.value
    submission.reviewer = reviewer
    submission.comment = comment.strip() if comment and comment.strip() else None
    submission.reviewed_at = datetime.now(timezone.utc)
    return submission


def reject(submission: Any, reviewer: str, comment: Optional[str]) -> Any:
    """Mark a pending submission rejected. Rejection always carries feedback."""
    if not comment or not comment.strip():
        raise ValidationError("Comment is required when rejecting a question bank")
    _ensure_pending(submission)
    submission.status = ReviewStatus.REJECTED.value
    submission.reviewer = reviewer
    submission.comment = comment.strip()
    submission.reviewed_at = datetime.now(timezone.utc)
    return submission
