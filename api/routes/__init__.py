# API Routes
from api.routes.question_banks import router as question_banks_router
from api.routes.submissions import router as submissions_router

__all__ = [
    "question_banks_router",
    "submissions_router",
]
