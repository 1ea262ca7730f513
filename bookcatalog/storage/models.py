"""
Record models for the catalog tables.

The hosted backend stores snake_case rows in the ``users`` and ``books``
tables. ``from_row`` / ``to_row`` are the only place rows cross the storage
boundary, and each lists its fields explicitly so an unexpected column never
leaks in and a missing one fails validation.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


USERS_TABLE = "users"
BOOKS_TABLE = "books"

USER_FIELDS = ("id", "name", "email", "password", "role", "created_at")
BOOK_FIELDS = (
    "id",
    "title",
    "author",
    "description",
    "category",
    "cover_url",
    "book_url",
    "stock",
    "added_by",
)


class UserRole(str, Enum):
    """Account roles."""
    ADMIN = "ADMIN"
    USER = "USER"


def _pick(row: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    # NULL columns fall back to the model defaults
    return {name: row[name] for name in fields if row.get(name) is not None}


class User(BaseModel):
    """A user account as stored in the ``users`` table."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    email: str
    password: Optional[str] = None
    role: UserRole = UserRole.USER
    created_at: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "User":
        return cls.model_validate(_pick(row, USER_FIELDS))

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "role": self.role.value,
            "created_at": self.created_at,
        }


class Book(BaseModel):
    """A catalog entry as stored in the ``books`` table."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    author: str
    description: str = ""
    category: str = ""
    cover_url: str = ""
    book_url: Optional[str] = None
    stock: int = Field(0, ge=0)
    added_by: str

    @property
    def is_available(self) -> bool:
        return self.stock > 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Book":
        return cls.model_validate(_pick(row, BOOK_FIELDS))

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "category": self.category,
            "cover_url": self.cover_url,
            "book_url": self.book_url,
            "stock": self.stock,
            "added_by": self.added_by,
        }
