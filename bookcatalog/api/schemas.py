"""
API Schemas for the book catalog

Pydantic models for request validation and response serialization:
- Book and user views
- Session / view-state models
- Auth models
- Error and health models

Design Decisions:
1. camelCase on the wire, snake_case in Python (alias generator)
2. Password hashes never leave the service
3. Request forms are shared with the controller (``bookcatalog.catalog.forms``)
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bookcatalog.catalog.forms import FormModel
from bookcatalog.catalog.state import CatalogController, EditorKind, EditorState, Screen
from bookcatalog.storage.models import Book, User, UserRole


class APIModel(BaseModel):
    """Base for response models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Book Schemas
# =============================================================================

class BookResponse(APIModel):
    """Book as shown in lists and editors."""

    id: str
    title: str
    author: str
    description: str
    category: str
    cover_url: str
    book_url: Optional[str] = None
    stock: int
    added_by: str

    # Derived display flags
    available: bool
    has_digital_version: bool

    @classmethod
    def from_book(cls, book: Book) -> "BookResponse":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            description=book.description,
            category=book.category,
            cover_url=book.cover_url,
            book_url=book.book_url,
            stock=book.stock,
            added_by=book.added_by,
            available=book.is_available,
            has_digital_version=bool(book.book_url),
        )


class CatalogResponse(APIModel):
    """Filtered catalog view."""

    books: list[BookResponse]
    total: int
    query: str
    category: str
    categories: list[str]


class CategoriesResponse(APIModel):
    """Category selector and editor suggestions."""

    all_categories: str
    available: list[str]
    suggested: list[str]


class MetadataRequest(FormModel):
    """Title/author pair to generate metadata for."""

    title: str = ""
    author: str = ""

    def validate_required(self) -> None:
        self.require("title", "author")


class MetadataResponse(APIModel):
    """Generated (or fallback) description and category."""

    description: str
    category: str


# =============================================================================
# User Schemas
# =============================================================================

class UserResponse(APIModel):
    """User account without credentials."""

    id: str
    name: str
    email: str
    role: UserRole
    created_at: str
    can_delete: bool = False

    @classmethod
    def from_user(cls, user: User, can_delete: bool = False) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            can_delete=can_delete,
        )


class UserListResponse(APIModel):
    """Admin user list."""

    users: list[UserResponse]
    total: int


# =============================================================================
# Session Schemas
# =============================================================================

class EditorResponse(APIModel):
    """State of one editor."""

    is_open: bool
    entity_id: Optional[str] = None

    @classmethod
    def from_state(cls, state: EditorState) -> "EditorResponse":
        return cls(is_open=state.is_open, entity_id=state.entity_id)


class SessionStateResponse(APIModel):
    """Read-only view of a controller."""

    user: Optional[UserResponse] = None
    screen: Screen
    query: str
    category: str
    is_loading: bool
    book_count: int
    user_count: int
    book_editor: EditorResponse
    user_editor: EditorResponse

    @classmethod
    def from_controller(cls, controller: CatalogController) -> "SessionStateResponse":
        return cls(
            user=UserResponse.from_user(controller.user) if controller.user else None,
            screen=controller.screen,
            query=controller.query,
            category=controller.category,
            is_loading=controller.is_loading,
            book_count=len(controller.books),
            user_count=len(controller.users),
            book_editor=EditorResponse.from_state(controller.editor(EditorKind.BOOK)),
            user_editor=EditorResponse.from_state(controller.editor(EditorKind.USER)),
        )


class ScreenRequest(APIModel):
    screen: Screen


class FiltersRequest(APIModel):
    """Omitted fields keep their current value."""

    query: Optional[str] = None
    category: Optional[str] = None


class EditorRequest(APIModel):
    kind: EditorKind
    entity_id: Optional[str] = None


# =============================================================================
# Auth Schemas
# =============================================================================

class TokenResponse(APIModel):
    """Bearer token plus the freshly loaded session."""

    access_token: str
    token_type: str = "bearer"
    session: SessionStateResponse


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[Any] = None
    code: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "El email ya está registrado",
                "detail": None,
                "code": "VALIDATION_ERROR",
                "timestamp": "2025-01-20T12:00:00Z",
            }
        }
    )


# =============================================================================
# Health Check
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    components: dict[str, Any] = Field(default_factory=dict)
