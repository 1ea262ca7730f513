"""
Authentication API Routes.

Handles:
- Login (opens a session and returns its bearer token)
- Self registration as a USER
- Logout
- Current user retrieval
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, Response, status
from loguru import logger

from bookcatalog.api.dependencies import (
    ServiceContainer,
    get_controller,
    get_service_container,
    get_session_id,
    get_sessions,
)
from bookcatalog.api.schemas import (
    ErrorResponse,
    SessionStateResponse,
    TokenResponse,
    UserResponse,
)
from bookcatalog.catalog.forms import CredentialsForm, RegistrationForm
from bookcatalog.catalog.sessions import SessionRegistry
from bookcatalog.catalog.state import CatalogController
from bookcatalog.security import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(
    session_id: str,
    controller: CatalogController,
    container: ServiceContainer,
) -> TokenResponse:
    token = create_access_token(
        session_id,
        container.settings.secret_key,
        expires_delta=timedelta(minutes=container.settings.access_token_expire_minutes),
    )
    return TokenResponse(
        access_token=token,
        session=SessionStateResponse.from_controller(controller),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "No matching user"}},
)
async def login(
    form: CredentialsForm,
    sessions: SessionRegistry = Depends(get_sessions),
    container: ServiceContainer = Depends(get_service_container),
):
    """
    Sign in with email and password.

    Both collections are loaded before the token is returned.
    """
    session_id, controller = await sessions.login(form)
    return _issue_token(session_id, controller, container)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Missing field or duplicate email"}},
)
async def register(
    form: RegistrationForm,
    sessions: SessionRegistry = Depends(get_sessions),
    container: ServiceContainer = Depends(get_service_container),
):
    """Create a USER account and sign it in."""
    session_id, controller = await sessions.register(form)
    return _issue_token(session_id, controller, container)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session_id: str = Depends(get_session_id),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Close the session. Closing an already closed session is not an error."""
    if not sessions.close(session_id):
        logger.debug(f"Logout for unknown session {session_id[:8]}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
async def read_current_user(controller: CatalogController = Depends(get_controller)):
    """Get the signed-in user."""
    return UserResponse.from_user(controller.user)
