"""
Catalog Module for the book catalog

Client-side state and derived views:
- Filtering and category listing over fetched books
- Form payloads for the editors
- Per-session view-state controller
- Session registry
"""

from bookcatalog.catalog.filters import (
    ALL_CATEGORIES,
    SUGGESTED_CATEGORIES,
    available_categories,
    filter_books,
    placeholder_cover_url,
)
from bookcatalog.catalog.forms import (
    BookForm,
    CredentialsForm,
    ProfileForm,
    RegistrationForm,
    UserForm,
)
from bookcatalog.catalog.state import (
    CatalogController,
    CatalogSnapshot,
    EditorKind,
    EditorState,
    Screen,
)
from bookcatalog.catalog.sessions import SessionRegistry

__all__ = [
    # Filters
    "ALL_CATEGORIES",
    "SUGGESTED_CATEGORIES",
    "available_categories",
    "filter_books",
    "placeholder_cover_url",
    # Forms
    "BookForm",
    "CredentialsForm",
    "ProfileForm",
    "RegistrationForm",
    "UserForm",
    # State
    "CatalogController",
    "CatalogSnapshot",
    "EditorKind",
    "EditorState",
    "Screen",
    "SessionRegistry",
]
