"""
Exam Cell Question Bank - FastAPI Application
Main application with CORS, rate limiting, error mapping and routes
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import limiter
from api.models import HealthResponse, ErrorResponse
from api.routes.question_banks import router as question_banks_router
from api.routes.submissions import router as submissions_router
from api.sessions import get_session_store
from config.logging import configure_logging
from config.settings import get_settings
from src.database.db import check_database, init_db
from src.question_bank.errors import (
    ConfigurationError,
    ImageUploadError,
    IncompleteSectionError,
    QuestionBankError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown"""
    configure_logging()
    logger.info("Exam Cell Question Bank API starting")

    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")

    yield

    # Closing every session cancels in-flight uploads
    get_session_store().clear()
    logger.info("Exam Cell Question Bank API stopped")


app = FastAPI(
    title="Exam Cell Question Bank API",
    description="""
    Question bank builder and exam cell review.

    ## Features
    - Module -> category -> question structure builder
    - Section rules loaded from the institution backend
    - Submit-time completeness check
    - Exam cell accept / reject
    - Question paper PDF export
    """,
    version="1.0.0",
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ================== MIDDLEWARE ==================

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to all responses"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# ================== ERROR HANDLERS ==================

def _error(status_code: int, error: str, exc: QuestionBankError, context: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            detail=exc.message,
            status_code=status_code,
            context=context
        ).model_dump()
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(400, "Validation Error", exc)


@app.exception_handler(IncompleteSectionError)
async def incomplete_section_handler(request: Request, exc: IncompleteSectionError):
    return _error(409, "Incomplete Section", exc, context=exc.to_dict())


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return _error(502, "Configuration Error", exc)


@app.exception_handler(ImageUploadError)
async def image_upload_error_handler(request: Request, exc: ImageUploadError):
    return _error(502, "Image Upload Error", exc)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    settings = get_settings()
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")

    error_detail = str(exc) if settings.debug else "An unexpected error occurred"

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal Server Error",
            detail=error_detail,
            status_code=500
        ).model_dump()
    )


# ================== ROUTES ==================

app.include_router(question_banks_router)
app.include_router(submissions_router)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": "Exam Cell Question Bank API",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
@limiter.limit("10/minute")
async def health_check(request: Request):
    """Liveness plus the state of the database and external collaborators."""
    settings = get_settings()
    database_ok = check_database()

    services = {
        "database": "healthy" if database_ok else "unhealthy",
        "configuration_backend": settings.backend_base_url,
        "image_host": "configured" if settings.image_host_cloud_name else "not_configured",
        "sessions": get_session_store().stats["size"],
    }

    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        version="1.0.0",
        services=services
    )


# ================== RUN ==================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
