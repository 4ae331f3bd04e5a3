"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from synapse_signup.adapters.abuse.memory import InMemoryAbuseTracker
from synapse_signup.api.models import HealthResponse
from synapse_signup.api.routes import router
from synapse_signup.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "registration",
        "description": "Token-gated self-registration for a Matrix homeserver",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the shared HTTP client for homeserver calls on startup
    - Creates the process-wide abuse tracker on startup
    - Closes the HTTP client on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Homeserver: %s", settings.matrix_server)

    http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_seconds))
    abuse_tracker = InMemoryAbuseTracker(
        max_failures=settings.abuse_max_failures,
        block_seconds=settings.abuse_block_seconds,
        failure_window_seconds=settings.abuse_failure_window_seconds,
        max_actors=settings.abuse_max_actors,
        sweep_interval_seconds=settings.abuse_sweep_interval_seconds,
    )

    # Store shared resources in app state for dependency injection
    app.state.http_client = http_client
    app.state.abuse_tracker = abuse_tracker

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await http_client.aclose()
    logger.info("HTTP client closed")


app = FastAPI(
    title="synapse-signup",
    description="Token-gated registration broker for a Synapse homeserver",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint. Returns 200 OK while the process is serving."""
    return HealthResponse(status="healthy")
