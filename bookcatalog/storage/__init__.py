"""
Storage Module for the book catalog

Records and data access for the hosted backend:
- User and Book models with explicit row mapping
- Repository returning explicit success/failure results
"""

from bookcatalog.storage.models import (
    BOOKS_TABLE,
    USERS_TABLE,
    Book,
    User,
    UserRole,
)
from bookcatalog.storage.repository import (
    CatalogRepository,
    StorageResult,
)

__all__ = [
    # Models
    "Book",
    "User",
    "UserRole",
    "BOOKS_TABLE",
    "USERS_TABLE",
    # Repository
    "CatalogRepository",
    "StorageResult",
]
