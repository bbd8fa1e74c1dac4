"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
wires the backend adapters and manages lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from src.adapters.credentials.memory import InMemoryCredentialStore
from src.adapters.http.client import BuddyBuilderApiClient, create_http_client
from src.adapters.memory.backend import InMemoryBuddyBackend
from src.api.sessions import SessionRegistry, orchestrator_factory
from src.api.v1 import router as v1_router
from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Registration Wizard API v1 - Drive multi-step registration sessions",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Builds the backend adapter (HTTP client or in-memory demo backend)
    - Creates the wizard session registry
    - Closes open sessions and the HTTP client on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")

    http_client = None
    if settings.use_mock_backend:
        logger.info("Using in-memory demo backend")
        backend = InMemoryBuddyBackend(bcrypt_cost=settings.bcrypt_cost)
    else:
        logger.info("Using backend API at %s", settings.api_base_url)
        http_client = create_http_client(settings.api_base_url, settings.request_timeout_seconds)
        backend = BuddyBuilderApiClient(http_client)

    credential_store = InMemoryCredentialStore()
    app.state.credentials = credential_store
    app.state.sessions = SessionRegistry(
        orchestrator_factory(
            backend,
            credential_store,
            debounce_seconds=settings.debounce_seconds,
            enforce_declared_steps=settings.enforce_declared_steps,
        ),
        ttl_seconds=settings.session_ttl_seconds,
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await app.state.sessions.close_all()
    if http_client is not None:
        await http_client.aclose()
        logger.info("Backend HTTP client closed")


app = FastAPI(
    title="buddybuilder-registration",
    description="Registration Wizard API - Multi-step sign-up with debounced availability checks",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str | int]:
    """
    Health check endpoint.

    Returns 200 OK with the number of open wizard sessions.
    """
    return {"status": "healthy", "sessions": len(request.app.state.sessions)}
