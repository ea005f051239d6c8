"""
FastAPI application for LinkedIn login.

This module wires dependencies and configures the application.
Business logic is in app/core, infrastructure in app/infrastructure.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime

# Configure logging FIRST, before other local imports
from app.logging_config import setup_global_logging

setup_global_logging()

# Now import other modules (they will use the configured logging)
from fastapi import FastAPI, Request, status  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from app.api import profile  # noqa: E402
from app.auth.config import get_auth_config  # noqa: E402
from app.core.exceptions import (  # noqa: E402
    PersistenceError,
    ProviderError,
    RefreshTokenUnavailableError,
)
from app.infrastructure.encryption import is_encryption_configured  # noqa: E402
from app.oauth import router as oauth_router  # noqa: E402
from app.users.repository import get_user_repository  # noqa: E402

logger = logging.getLogger(__name__)


# Refuse to start without a session signing secret
get_auth_config().validate()


# ============================================================================
# Application Lifecycle
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    The user store (and its Firestore client, when configured) is created
    once at startup and shared by every request for the life of the process.
    """
    logger.info("Application starting up...")
    repository = get_user_repository()
    logger.info(f"User store ready: {type(repository).__name__}")
    if not is_encryption_configured():
        logger.warning(
            "Refresh tokens are encrypted with the insecure development key"
        )
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="LinkedIn Login",
    description="Sign in with LinkedIn and manage the stored profile",
    version="1.0.0",
    lifespan=lifespan,
)


# ============================================================================
# Centralized Exception Handlers
# ============================================================================


@app.exception_handler(RefreshTokenUnavailableError)
async def refresh_token_unavailable_handler(
    request: Request, exc: RefreshTokenUnavailableError
):
    """
    Handle a refresh attempt without a usable stored refresh token.

    Returns 404 with the reason code; the provider was not contacted.
    """
    logger.info(f"Refresh token unavailable: {exc.reason}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": exc.reason},
    )


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    """
    Handle LinkedIn failures outside the callback.

    Returns 502 Bad Gateway. Provider details are logged, never returned.
    """
    logger.error(f"Provider error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "refresh_failed"},
    )


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    """Handle user store anomalies."""
    logger.error(f"Persistence error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal error"},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle Pydantic validation errors (invalid JSON, unknown fields, bad email).

    Returns 422 Unprocessable Entity. The request body is not logged since
    it may carry personal data.
    """
    logger.warning(
        f"Validation error on {request.url.path}: {len(exc.errors())} error(s)"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "status": "error",
            "message": "Invalid request body",
            "details": [
                {"loc": list(error["loc"]), "msg": error["msg"]}
                for error in exc.errors()
            ],
        },
    )


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "linkedin-login",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(oauth_router.router)
app.include_router(profile.router)


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
