"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the wizard
session registry and the orchestrator addressed by a request.
"""

from fastapi import Depends, HTTPException, Request, status

from src.api.sessions import SessionRegistry
from src.domain.exceptions import SessionNotFound
from src.domain.orchestrator import RegistrationOrchestrator


def get_session_registry(request: Request) -> SessionRegistry:
    """
    Get the session registry from app state.

    The registry is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.sessions


def get_orchestrator(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> RegistrationOrchestrator:
    """
    Resolve the orchestrator for the session id in the path.

    Raises:
        HTTPException: 404 if the session is unknown or already closed
    """
    try:
        return registry.get(session_id)
    except SessionNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Registration session not found",
        ) from None
