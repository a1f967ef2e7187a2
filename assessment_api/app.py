"""Main FastAPI application."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assessment_api.config import LOG_LEVEL
from assessment_api.database import init_db
from assessment_api.errors import AssessmentError
from assessment_api.routes import assessments, attempts
from core.logging_setup import setup_console_logging

setup_console_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)

app = FastAPI(title="Assessment Engine API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError) -> JSONResponse:
    """Translate service errors into a stable code plus message."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "detail": exc.detail},
    )


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database on startup."""
    init_db()


# Include routers
app.include_router(assessments.router)
app.include_router(attempts.router)
