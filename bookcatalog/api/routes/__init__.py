"""
API Routes for the book catalog

Route modules:
- auth: Login, registration, logout
- session: View state (screen, filters, editors)
- books: Catalog browsing, book management, AI metadata
- users: Account management and profile edits
"""

from bookcatalog.api.routes.auth import router as auth_router
from bookcatalog.api.routes.session import router as session_router
from bookcatalog.api.routes.books import router as books_router
from bookcatalog.api.routes.users import router as users_router

__all__ = [
    "auth_router",
    "session_router",
    "books_router",
    "users_router",
]
