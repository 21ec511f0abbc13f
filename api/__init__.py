# API module
from api.models import (
    SessionResponse,
    SubmitResponse,
    SubmissionSummary,
    SubmissionDetail,
    HealthResponse,
    ErrorResponse
)
from api.main import app

__all__ = [
    "app",
    "SessionResponse",
    "SubmitResponse",
    "SubmissionSummary",
    "SubmissionDetail",
    "HealthResponse",
    "ErrorResponse",
]
