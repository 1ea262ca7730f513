"""
User API Routes

Account management for admins, and profile editing for the signed-in
user.
"""

from fastapi import APIRouter, Depends, Response, status
from loguru import logger

from bookcatalog.api.dependencies import (
    ensure_stored,
    get_controller,
    get_sessions,
    require_admin,
)
from bookcatalog.api.schemas import ErrorResponse, UserListResponse, UserResponse
from bookcatalog.catalog.forms import ProfileForm, UserForm
from bookcatalog.catalog.sessions import SessionRegistry
from bookcatalog.catalog.state import CatalogController


router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=UserListResponse,
    responses={403: {"model": ErrorResponse, "description": "Admin only"}},
)
async def list_users(controller: CatalogController = Depends(require_admin)):
    """All accounts. ``canDelete`` is false on the caller's own row."""
    users = [
        UserResponse.from_user(u, can_delete=controller.can_delete_user(u.id))
        for u in controller.users
    ]
    return UserListResponse(users=users, total=len(users))


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def create_user(
    form: UserForm,
    controller: CatalogController = Depends(require_admin),
):
    user = ensure_stored(await controller.save_user(form))
    logger.info(f"Admin {controller.user.id} created user {user.id} ({user.role.value})")
    return UserResponse.from_user(user, can_delete=controller.can_delete_user(user.id))


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    form: ProfileForm,
    controller: CatalogController = Depends(get_controller),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Change the caller's name, email or password. The role is not editable here."""
    user = ensure_stored(await controller.update_profile(form))
    sessions.sync_account(user)
    return UserResponse.from_user(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def update_user(
    user_id: str,
    form: UserForm,
    controller: CatalogController = Depends(require_admin),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """
    Edit an account. An empty password keeps the stored one.

    Open sessions of that account pick up the new name, email and role.
    """
    user = ensure_stored(await controller.save_user(form, user_id=user_id))
    sessions.sync_account(user)
    return UserResponse.from_user(user, can_delete=controller.can_delete_user(user.id))


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"model": ErrorResponse, "description": "Admin only, or own account"}},
)
async def delete_user(
    user_id: str,
    controller: CatalogController = Depends(require_admin),
    sessions: SessionRegistry = Depends(get_sessions),
):
    """Delete an account and close its open sessions."""
    ensure_stored(await controller.delete_user(user_id))
    sessions.revoke_account(user_id)
    logger.info(f"Admin {controller.user.id} deleted user {user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
