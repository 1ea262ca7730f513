"""
Book API Routes

Catalog browsing for every signed-in user, book management and AI
metadata generation for admins.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from loguru import logger

from bookcatalog.api.dependencies import (
    ensure_stored,
    get_assistant,
    get_controller,
    require_admin,
)
from bookcatalog.api.schemas import (
    BookResponse,
    CatalogResponse,
    CategoriesResponse,
    ErrorResponse,
    MetadataRequest,
    MetadataResponse,
)
from bookcatalog.assistant.generator import MetadataAssistant
from bookcatalog.catalog.filters import ALL_CATEGORIES, SUGGESTED_CATEGORIES
from bookcatalog.catalog.forms import BookForm
from bookcatalog.catalog.state import CatalogController


router = APIRouter(prefix="/books", tags=["books"])


ADMIN_ERRORS = {
    400: {"model": ErrorResponse, "description": "Missing required field"},
    403: {"model": ErrorResponse, "description": "Admin only"},
    503: {"model": ErrorResponse, "description": "Backend write failed"},
}


# =============================================================================
# Browsing
# =============================================================================

@router.get("", response_model=CatalogResponse)
async def list_books(
    q: Optional[str] = Query(None, description="Search text; updates the session filter"),
    category: Optional[str] = Query(None, description=f"Category or '{ALL_CATEGORIES}'"),
    controller: CatalogController = Depends(get_controller),
):
    """
    Filtered catalog.

    Query parameters are stored as the session's filters, so a later call
    without them returns the same view.
    """
    if q is not None:
        controller.set_query(q)
    if category is not None:
        controller.set_category(category)

    books = controller.visible_books
    return CatalogResponse(
        books=[BookResponse.from_book(b) for b in books],
        total=len(books),
        query=controller.query,
        category=controller.category,
        categories=controller.categories,
    )


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(controller: CatalogController = Depends(get_controller)):
    """Categories present in the catalog, plus the editor's suggestions."""
    return CategoriesResponse(
        all_categories=ALL_CATEGORIES,
        available=controller.categories,
        suggested=list(SUGGESTED_CATEGORIES),
    )


# =============================================================================
# Management
# =============================================================================

@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ADMIN_ERRORS,
)
async def create_book(
    form: BookForm,
    controller: CatalogController = Depends(require_admin),
):
    logger.info(f"Creating book: {form.title} by {form.author}")
    book = ensure_stored(await controller.save_book(form))
    return BookResponse.from_book(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    responses={**ADMIN_ERRORS, 404: {"model": ErrorResponse, "description": "Book not found"}},
)
async def update_book(
    book_id: str,
    form: BookForm,
    controller: CatalogController = Depends(require_admin),
):
    """Replace a book's editable fields. ``addedBy`` is never changed."""
    book = ensure_stored(await controller.save_book(form, book_id=book_id))
    return BookResponse.from_book(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ADMIN_ERRORS,
)
async def delete_book(
    book_id: str,
    controller: CatalogController = Depends(require_admin),
):
    logger.info(f"Deleting book: {book_id}")
    ensure_stored(await controller.delete_book(book_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/metadata",
    response_model=MetadataResponse,
    responses=ADMIN_ERRORS,
)
async def generate_metadata(
    request: MetadataRequest,
    controller: CatalogController = Depends(require_admin),
    assistant: MetadataAssistant = Depends(get_assistant),
):
    """
    Suggest a Spanish description and a genre for a title/author pair.

    Always answers 200: an unconfigured or failing model yields the
    fallback text instead of an error.
    """
    request.validate_required()
    details = await assistant.generate_book_metadata(request.title, request.author)
    return MetadataResponse(description=details.description, category=details.category)
