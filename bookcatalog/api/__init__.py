"""
Book Catalog - FastAPI Backend.

HTTP surface over the catalog controller: sessions, browsing, and admin
management of books and users.
"""

from .main import app, create_app, main
from .dependencies import (
    ServiceContainer,
    Settings,
    get_service_container,
    get_settings,
)
from .schemas import (
    BookResponse,
    CatalogResponse,
    ErrorResponse,
    HealthResponse,
    SessionStateResponse,
    TokenResponse,
    UserResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_service_container",
    "ServiceContainer",
    # Schemas
    "BookResponse",
    "CatalogResponse",
    "ErrorResponse",
    "HealthResponse",
    "SessionStateResponse",
    "TokenResponse",
    "UserResponse",
]
