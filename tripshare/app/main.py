"""FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from tripshare.app.api.routes.destinations import router as destinations_router
from tripshare.app.api.routes.health import router as health_router
from tripshare.app.api.routes.metrics import router as metrics_router
from tripshare.app.api.routes.shares import router as shares_router
from tripshare.app.api.routes.trips import router as trips_router
from tripshare.app.config import get_settings
from tripshare.app.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    TripShareError,
    ValidationError,
)
from tripshare.app.utils.logging import configure_logging

logger = logging.getLogger(__name__)

configure_logging(get_settings())

app = FastAPI(title="Tripshare API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(trips_router)
app.include_router(destinations_router)
app.include_router(shares_router)

ERROR_STATUS: list[tuple[type[TripShareError], int]] = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StorageError, 503),
]


@app.exception_handler(TripShareError)
async def handle_domain_error(request: Request, exc: TripShareError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={"structured": {"path": request.url.path, "error": type(exc).__name__}},
        )

    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Tripshare API", "version": "0.1.0"}
