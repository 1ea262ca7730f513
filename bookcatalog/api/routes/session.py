"""
Session API Routes

Read and drive the per-client view state: active screen, search filters,
open editors, and manual refresh.
"""

from fastapi import APIRouter, Depends

from bookcatalog.api.dependencies import get_controller
from bookcatalog.api.schemas import (
    EditorRequest,
    EditorResponse,
    ErrorResponse,
    FiltersRequest,
    ScreenRequest,
    SessionStateResponse,
)
from bookcatalog.catalog.state import CatalogController, EditorKind

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionStateResponse)
async def get_session(controller: CatalogController = Depends(get_controller)):
    """Current view state."""
    return SessionStateResponse.from_controller(controller)


@router.put("/screen", response_model=SessionStateResponse)
async def set_screen(
    request: ScreenRequest,
    controller: CatalogController = Depends(get_controller),
):
    """
    Navigate to a screen.

    Non-admins asking for an admin screen land on the catalog; the
    response reports the screen actually shown.
    """
    controller.navigate(request.screen)
    return SessionStateResponse.from_controller(controller)


@router.put("/filters", response_model=SessionStateResponse)
async def set_filters(
    request: FiltersRequest,
    controller: CatalogController = Depends(get_controller),
):
    if request.query is not None:
        controller.set_query(request.query)
    if request.category is not None:
        controller.set_category(request.category)
    return SessionStateResponse.from_controller(controller)


@router.post("/refresh", response_model=SessionStateResponse)
async def refresh(controller: CatalogController = Depends(get_controller)):
    """Re-fetch users and books."""
    await controller.refresh()
    return SessionStateResponse.from_controller(controller)


@router.put(
    "/editor",
    response_model=EditorResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Unknown entity id"},
    },
)
async def open_editor(
    request: EditorRequest,
    controller: CatalogController = Depends(get_controller),
):
    """Open the book or user editor, empty or on an existing id."""
    state = controller.open_editor(request.kind, request.entity_id)
    return EditorResponse.from_state(state)


@router.delete("/editor/{kind}", response_model=EditorResponse)
async def close_editor(
    kind: EditorKind,
    controller: CatalogController = Depends(get_controller),
):
    controller.close_editor(kind)
    return EditorResponse.from_state(controller.editor(kind))
