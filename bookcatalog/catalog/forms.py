"""
Form payloads accepted by the catalog controller.

Type checks happen in pydantic; required-field checks are explicit so the
user sees one plain message instead of a list of schema errors.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bookcatalog.exceptions import ValidationError
from bookcatalog.storage.models import UserRole


REQUIRED_FIELDS_MESSAGE = "Todos los campos son obligatorios"


class FormModel(BaseModel):
    """Base for forms: accepts camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def require(self, *fields: str) -> None:
        missing = [name for name in fields if not str(getattr(self, name) or "").strip()]
        if missing:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE, detail=f"Missing: {', '.join(missing)}")


class BookForm(FormModel):
    """Book editor fields."""

    title: str = ""
    author: str = ""
    description: str = ""
    category: str = ""
    stock: int = Field(1, ge=0)
    cover_url: str = ""
    book_url: str = ""

    def validate_required(self) -> None:
        self.require("title", "author", "category", "description")


class UserForm(FormModel):
    """User editor fields (admin)."""

    name: str = ""
    email: str = ""
    password: str = ""
    role: UserRole = UserRole.USER

    def validate_required(self, is_new: bool) -> None:
        if is_new:
            self.require("name", "email", "password")
        else:
            self.require("name", "email")


class ProfileForm(FormModel):
    """Self-service profile edit; omitted fields are left unchanged."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RegistrationForm(FormModel):
    """Self registration."""

    name: str = ""
    email: str = ""
    password: str = ""

    def validate_required(self) -> None:
        self.require("name", "email", "password")


class CredentialsForm(FormModel):
    """Login."""

    email: str = ""
    password: str = ""
