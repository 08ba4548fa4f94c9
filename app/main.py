"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.webhooks import limiter
from app.api.webhooks import router as webhook_router
from app.core.config import settings
from app.core.logging import logger, setup_logging

# Configure logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    logger.info(
        "application_starting",
        hubspot_configured=bool(settings.hubspot_private_app_token),
        bullhorn_configured=bool(
            settings.bullhorn_client_id
            and settings.bullhorn_client_secret
            and settings.bullhorn_refresh_token
        ),
        password_fallback=bool(settings.bullhorn_username and settings.bullhorn_password),
    )

    yield

    logger.info("application_stopped")


# Create FastAPI app
app = FastAPI(
    title="HubSpot Bullhorn Resume Sync",
    description="Sync HubSpot contact resumes and categories to Bullhorn candidates",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Include routers
app.include_router(webhook_router)


@app.get("/health")
async def health_check() -> dict[str, Any]:
    """
    Health check endpoint.

    Reports which integrations are configured; no outbound calls are made.
    """
    return {
        "status": "healthy",
        "hubspot": "configured" if settings.hubspot_private_app_token else "missing_token",
        "bullhorn": "configured" if settings.bullhorn_refresh_token else "missing_refresh_token",
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "HubSpot Bullhorn Resume Sync"}
