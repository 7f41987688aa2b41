"""FastAPI application factory.

Main entry point for the exam-preparation Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from examprep import __version__
from examprep.core import content
from examprep.core.errors import (
    AuthenticationError,
    ConflictError,
    DailyLimitReachedError,
    ExamPrepError,
    NotFoundError,
    PermissionDeniedError,
    PremiumRequiredError,
    ValidationError,
)
from examprep.db.database import init_db
from examprep.web.routes import (
    ai_router,
    auth_router,
    challenges_router,
    disciplines_router,
    downloads_router,
    exams_router,
    health_router,
    practice_router,
    questions_router,
    rankings_router,
    simulations_router,
    study_router,
    syllabus_router,
    tracking_router,
    universities_router,
    users_router,
    videos_router,
)

logger = structlog.get_logger(__name__)

ERROR_STATUS: dict[type[ExamPrepError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    PremiumRequiredError: status.HTTP_402_PAYMENT_REQUIRED,
    DailyLimitReachedError: status.HTTP_429_TOO_MANY_REQUESTS,
}


def status_for(error: ExamPrepError) -> int:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    db_path = init_db()
    seeded = content.initialize_default_content()
    logger.info("api_startup", db_path=str(db_path), default_content_seeded=seeded)
    yield


async def handle_domain_error(request: Request, exc: ExamPrepError) -> JSONResponse:
    code = status_for(exc)
    logger.info("api.domain_error", path=request.url.path, status=code, error=str(exc))
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=code, content={"detail": str(exc)}, headers=headers)


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    logger.info("api.bad_request", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="ExamPrep API",
        description="Web API for exam preparation: challenges, study, rankings and analytics",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ExamPrepError, handle_domain_error)
    app.add_exception_handler(ValueError, handle_value_error)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(universities_router)
    app.include_router(disciplines_router)
    app.include_router(exams_router)
    app.include_router(questions_router)
    app.include_router(challenges_router)
    app.include_router(study_router)
    app.include_router(rankings_router)
    app.include_router(downloads_router)
    app.include_router(videos_router)
    app.include_router(tracking_router)
    app.include_router(ai_router)
    app.include_router(simulations_router)
    app.include_router(syllabus_router)
    app.include_router(practice_router)

    return app


# Default app instance for uvicorn
app = create_app()
