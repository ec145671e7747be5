"""Study-material API layer — routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProcessContentRequest,
    ProcessContentResponse,
    QuizItem,
    QuizListResponse,
    UserStatsResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "HealthResponse",
    "ProcessContentRequest",
    "ProcessContentResponse",
    "QuizItem",
    "QuizListResponse",
    "UserStatsResponse",
]
