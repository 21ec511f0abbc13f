"""
Exam Cell Question Bank - API Models
Request/Response models for FastAPI endpoints
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Any, Dict, List, Optional
from datetime import datetime


# ================== BUILDER REQUESTS ==================

class CountRequest(BaseModel):
    """Module or category count. Validated by the builder so bound messages stay consistent."""
    count: Any = Field(..., description="Whole number between 1 and 10")

    model_config = {
        "json_schema_extra": {
            "example": {"count": 3}
        }
    }


class CategoryFieldRequest(BaseModel):
    """Set marks or target question count on an unconfirmed category"""
    field: str = Field(..., description="marks | questionCount")
    value: Any = Field(None, description="Coerced to a non-negative integer")

    model_config = {
        "json_schema_extra": {
            "example": {"field": "marks", "value": "5"}
        }
    }


class LoadConfigurationRequest(BaseModel):
    """Catalog selection the section rules are loaded for"""
    department_id: Any = None
    course_id: Any = None
    program_id: Any = None
    regulation_id: Any = None

    model_config = {
        "json_schema_extra": {
            "example": {"department_id": 1, "course_id": 4, "program_id": 2, "regulation_id": 1}
        }
    }


class QuestionOutcomeRequest(BaseModel):
    course_outcome: Any = Field(..., description="Course outcome number (CO)")


class BlockContentRequest(BaseModel):
    content: str = Field("", max_length=20_000, description="Sub-question text, $...$ for inline math")


class BlockMetaRequest(BaseModel):
    marks: Any = None
    bloom_level: Any = None


class BlockImageUrlRequest(BaseModel):
    """Attach an already hosted image"""
    url: str = Field(..., min_length=1, max_length=2048)


class ImageUploadRequest(BaseModel):
    """Image for a block, uploaded to the image host in the background"""
    image_base64: str = Field(
        ...,
        description="Base64 encoded image",
        max_length=10_000_000  # ~7.5MB decoded
    )
    filename: str = Field("image.png", max_length=255)
    content_type: str = Field("image/png", max_length=100)


# ================== BUILDER RESPONSES ==================

class SessionResponse(BaseModel):
    """Current state of a builder session"""
    session_id: str
    owner: str
    created_at: datetime
    tree: Dict[str, Any]
    question_total: int = 0
    operation_count: int = 0
    pending_uploads: int = 0


class ValidationResponse(BaseModel):
    valid: bool = True
    question_total: int = 0


class SubmitResponse(BaseModel):
    submission_id: str
    status: str
    question_count: int


class UploadStartedResponse(BaseModel):
    session_id: str
    question_id: str
    block_id: str
    started: bool
    pending_uploads: int


class OperationResponse(BaseModel):
    name: str
    params: Dict[str, Any] = Field(default_factory=dict)
    at: datetime


# ================== SUBMISSION MODELS ==================

class ReviewRequest(BaseModel):
    """Exam cell decision on a submitted bank"""
    comment: Optional[str] = Field(None, max_length=2000)


class SubmissionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    submitter: str
    status: str
    department_id: Optional[int] = None
    course_id: Optional[int] = None
    program_id: Optional[int] = None
    regulation_id: Optional[int] = None
    module_count: int = 0
    question_count: int = 0
    reviewer: Optional[str] = None
    comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SubmissionDetail(SubmissionSummary):
    tree: Dict[str, Any]


class SubmissionListResponse(BaseModel):
    submissions: List[SubmissionSummary]
    total: int


class PaperExportRequest(BaseModel):
    """Course details for the printed header, plus optional per-section limits keyed by marks"""
    course_code: str = ""
    course_title: str = ""
    credits: Optional[float] = None
    year_of_study: str = ""
    semester: str = ""
    academic_year: str = ""
    regulation: str = ""
    program: str = ""
    faculty: List[str] = Field(default_factory=list)
    section_limits: Dict[int, Annotated[int, Field(ge=0)]] = Field(default_factory=dict)


# ================== COMMON ==================

class HealthResponse(BaseModel):
    """Health check response"""
    status: str = "healthy"
    version: str = "1.0.0"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    services: dict = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    detail: Optional[str] = None
    status_code: int = 500
    context: Optional[Dict[str, Any]] = None
