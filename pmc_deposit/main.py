"""
PMC Deposit Extension

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pmc_deposit.api.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware
from pmc_deposit.api.v1 import router as api_v1_router
from pmc_deposit.config import get_settings
from pmc_deposit.database import close_db, init_db
from pmc_deposit.exceptions import (
    ActorRequiredError,
    ConcurrentUpdateError,
    InvariantViolationError,
    MetadataRuleError,
    PMCError,
    RecordNotFoundError,
)
from pmc_deposit.logging_config import configure_logging, get_logger
from pmc_deposit.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)

# Most specific first
_ERROR_STATUS: Dict[Type[PMCError], int] = {
    RecordNotFoundError: status.HTTP_404_NOT_FOUND,
    ActorRequiredError: status.HTTP_401_UNAUTHORIZED,
    MetadataRuleError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvariantViolationError: status.HTTP_409_CONFLICT,
    ConcurrentUpdateError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    PMC Deposit Extension

    Deposit workflow for PubMed Central: metadata forms with grant rules,
    confirmation, destination status tracking and version cloning.
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(RequestIdMiddleware)


def _error_headers(request: Request) -> dict:
    req_id = getattr(request.state, "request_id", None)
    return {REQUEST_ID_HEADER: req_id} if req_id else {}


@app.exception_handler(PMCError)
async def pmc_error_handler(request: Request, exc: PMCError):
    """Map workflow errors to HTTP statuses."""
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if isinstance(exc, InvariantViolationError):
        logger.error("Invariant violation: %s", exc.message, extra={"details": exc.details})
    content = {
        "error": {"type": "general", "message": exc.message, "details": exc.details},
    }
    return JSONResponse(status_code=status_code, content=content, headers=_error_headers(request))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": errors},
        headers=_error_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_error_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(status="ok", version=settings.version, database="connected")


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pmc_deposit.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
