# Database module
from src.database.models import Base, QuestionBankSubmission
from src.database.db import (
    engine,
    SessionLocal,
    init_db,
    check_database,
    get_db,
    get_db_context,
)
from src.database.submissions import (
    DatabaseSubmissionSink,
    get_submission,
    list_submissions,
    record_review,
)

__all__ = [
    # Models
    "Base",
    "QuestionBankSubmission",
    # Database
    "engine",
    "SessionLocal",
    "init_db",
    "check_database",
    "get_db",
    "get_db_context",
    # Submissions
    "DatabaseSubmissionSink",
    "get_submission",
    "list_submissions",
    "record_review",
]
