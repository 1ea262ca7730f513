"""
Catalog view-state controller.

One ``CatalogController`` owns the state of one signed-in client: the
fetched users and books, the search query and category selection, the
active screen, the open editors, and the busy flag. State is exposed
through read-only properties and changes only through the action methods
below.

Design Decisions:
1. Wholesale refresh: collections are never patched in place; every
   successful mutation re-fetches both tables
2. Atomic commit: both fetch results land in one immutable snapshot
3. Role gate on read: an admin screen is never reported to a non-admin,
   whatever ``_screen`` holds
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from loguru import logger

from bookcatalog.catalog.filters import (
    ALL_CATEGORIES,
    available_categories,
    filter_books,
    placeholder_cover_url,
)
from bookcatalog.catalog.forms import BookForm, ProfileForm, UserForm
from bookcatalog.exceptions import (
    AccessDeniedError,
    ActionUnavailableError,
    AuthenticationError,
    NotFoundError,
)
from bookcatalog.security import hash_password
from bookcatalog.storage.models import Book, User
from bookcatalog.storage.repository import CatalogRepository, StorageResult


# =============================================================================
# State types
# =============================================================================

class Screen(str, Enum):
    """Screens a client can be on."""
    LOGIN = "login"
    ADMIN_BOOKS = "admin-books"
    ADMIN_USERS = "admin-users"
    CATALOG = "user-home"


ADMIN_SCREENS = frozenset({Screen.ADMIN_BOOKS, Screen.ADMIN_USERS})


class EditorKind(str, Enum):
    """Entity editors (the book and user modals)."""
    BOOK = "book"
    USER = "user"


@dataclass(frozen=True)
class EditorState:
    """An editor is either closed, open for a new entity, or open on an id."""

    is_open: bool = False
    entity_id: Optional[str] = None


CLOSED_EDITOR = EditorState()


@dataclass(frozen=True)
class CatalogSnapshot:
    """Users and books from the same refresh."""

    users: tuple[User, ...] = ()
    books: tuple[Book, ...] = ()


EMPTY_SNAPSHOT = CatalogSnapshot()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def initial_screen(user: User) -> Screen:
    """Landing screen after sign-in."""
    return Screen.ADMIN_BOOKS if user.is_admin else Screen.CATALOG


# =============================================================================
# Controller
# =============================================================================

class CatalogController:
    """
    Per-session application state with an explicit action surface.

    Usage:
        controller = CatalogController(repository)
        await controller.sign_in(user)

        controller.set_query("arc")
        controller.visible_books   # recomputed on every read

        await controller.save_book(BookForm(...))
        controller.sign_out()
    """

    def __init__(self, repository: CatalogRepository):
        self._repository = repository

        self._user: Optional[User] = None
        self._screen = Screen.LOGIN
        self._query = ""
        self._category = ALL_CATEGORIES
        self._snapshot = EMPTY_SNAPSHOT
        self._editors: dict[EditorKind, EditorState] = {
            EditorKind.BOOK: CLOSED_EDITOR,
            EditorKind.USER: CLOSED_EDITOR,
        }

        self._pending_refreshes = 0
        # Refreshes are numbered; a result older than the committed one is dropped
        self._refresh_seq = 0
        self._committed_seq = 0

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def is_admin(self) -> bool:
        return self._user is not None and self._user.is_admin

    @property
    def screen(self) -> Screen:
        if self._user is None:
            return Screen.LOGIN
        if self._screen in ADMIN_SCREENS and not self._user.is_admin:
            return Screen.CATALOG
        if self._screen == Screen.LOGIN:
            return initial_screen(self._user)
        return self._screen

    @property
    def query(self) -> str:
        return self._query

    @property
    def category(self) -> str:
        return self._category

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def books(self) -> tuple[Book, ...]:
        return self._snapshot.books

    @property
    def users(self) -> tuple[User, ...]:
        return self._snapshot.users

    @property
    def is_loading(self) -> bool:
        return self._pending_refreshes > 0

    @property
    def visible_books(self) -> list[Book]:
        return filter_books(self._snapshot.books, self._query, self._category)

    @property
    def categories(self) -> list[str]:
        return available_categories(self._snapshot.books)

    def editor(self, kind: EditorKind) -> EditorState:
        return self._editors[kind]

    def find_book(self, book_id: str) -> Optional[Book]:
        return next((b for b in self._snapshot.books if b.id == book_id), None)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self._snapshot.users if u.id == user_id), None)

    def can_delete_user(self, user_id: str) -> bool:
        """Delete is offered to admins for every account except their own."""
        return self.is_admin and user_id != self._user.id

    # =========================================================================
    # Session transitions
    # =========================================================================

    async def sign_in(self, user: User) -> None:
        """Start a session for ``user`` and load both collections."""
        self._reset()
        self._user = user
        self._screen = initial_screen(user)
        logger.info(f"User {user.id} signed in as {user.role.value}")
        await self.refresh()

    def sign_out(self) -> None:
        """Full state reset back to the login screen."""
        if self._user is not None:
            logger.info(f"User {self._user.id} signed out")
        self._reset()

    def _reset(self) -> None:
        self._user = None
        self._screen = Screen.LOGIN
        self._query = ""
        self._category = ALL_CATEGORIES
        self._snapshot = EMPTY_SNAPSHOT
        self._editors = {kind: CLOSED_EDITOR for kind in EditorKind}
        # Anything still in flight belongs to the previous session
        self._committed_seq = self._refresh_seq

    async def refresh(self) -> CatalogSnapshot:
        """
        Re-fetch users and books concurrently and commit them together.

        A failed fetch contributes an empty collection. A refresh that
        finishes after a newer one, or after sign-out, is discarded.

        Returns:
            The snapshot in effect after this call.
        """
        self._refresh_seq += 1
        seq = self._refresh_seq
        self._pending_refreshes += 1
        try:
            users_result, books_result = await asyncio.gather(
                self._repository.list_users(),
                self._repository.list_books(),
            )
        finally:
            self._pending_refreshes -= 1

        if seq <= self._committed_seq:
            logger.debug(f"Discarding stale refresh #{seq}")
            return self._snapshot

        self._snapshot = CatalogSnapshot(
            users=tuple(users_result.value or ()),
            books=tuple(books_result.value or ()),
        )
        self._committed_seq = seq

        # The signed-in account follows its stored row; a failed fetch proves nothing
        if self._user is not None and users_result.ok:
            current = self.find_user(self._user.id)
            if current is None:
                logger.warning(f"Account {self._user.id} no longer exists; signing out")
                self._reset()
            else:
                self.adopt_account(current)
        return self._snapshot

    def adopt_account(self, user: User) -> None:
        """
        Take over a newer copy of the signed-in account.

        Copies for other accounts are ignored. Losing the ADMIN role closes
        both editors; the screen gate handles the rest on the next read.
        """
        if self._user is None or user.id != self._user.id:
            return
        demoted = self._user.is_admin and not user.is_admin
        self._user = user
        if demoted:
            logger.info(f"User {user.id} lost the ADMIN role")
            self._editors = {kind: CLOSED_EDITOR for kind in EditorKind}

    # =========================================================================
    # View actions
    # =========================================================================

    def navigate(self, screen: Screen) -> Screen:
        """
        Switch screens. Admin screens requested by a non-admin land on
        the catalog instead.

        Returns:
            The screen actually shown.
        """
        self._require_user()
        if screen == Screen.LOGIN:
            return self.screen
        if screen in ADMIN_SCREENS and not self.is_admin:
            logger.warning(f"User {self._user.id} requested admin screen {screen.value}")
            screen = Screen.CATALOG
        self._screen = screen
        return self.screen

    def set_query(self, query: str) -> None:
        self._require_user()
        self._query = query

    def set_category(self, category: str) -> None:
        self._require_user()
        self._category = category or ALL_CATEGORIES

    def open_editor(self, kind: EditorKind, entity_id: Optional[str] = None) -> EditorState:
        """Open an editor for a new entity (no id) or an existing one."""
        self._require_admin(f"edit {kind.value}")
        if entity_id is not None:
            found = self.find_book(entity_id) if kind == EditorKind.BOOK else self.find_user(entity_id)
            if found is None:
                raise NotFoundError(kind.value, entity_id)
        self._editors[kind] = EditorState(is_open=True, entity_id=entity_id)
        return self._editors[kind]

    def close_editor(self, kind: EditorKind) -> None:
        self._editors[kind] = CLOSED_EDITOR

    # =========================================================================
    # Book actions
    # =========================================================================

    async def save_book(self, form: BookForm, book_id: Optional[str] = None) -> StorageResult[Book]:
        """
        Create a book, or update ``book_id``.

        ``added_by`` is taken from the existing record on update and from
        the acting admin on create; the form cannot change it.
        """
        self._require_admin("save book")
        form.validate_required()

        existing = None
        if book_id is not None:
            existing = self.find_book(book_id)
            if existing is None:
                raise NotFoundError("Book", book_id)

        book = Book(
            id=existing.id if existing else str(uuid4()),
            title=form.title,
            author=form.author,
            description=form.description,
            category=form.category,
            stock=form.stock,
            book_url=form.book_url or None,
            cover_url=form.cover_url or placeholder_cover_url(form.title),
            added_by=existing.added_by if existing else self._user.id,
        )

        result = await self._repository.save_book(book)
        if result.ok:
            self.close_editor(EditorKind.BOOK)
            await self.refresh()
        return result

    async def delete_book(self, book_id: str) -> StorageResult[None]:
        self._require_admin("delete book")
        result = await self._repository.delete_book(book_id)
        if result.ok:
            if self._editors[EditorKind.BOOK].entity_id == book_id:
                self.close_editor(EditorKind.BOOK)
            await self.refresh()
        return result

    # =========================================================================
    # User actions
    # =========================================================================

    async def save_user(self, form: UserForm, user_id: Optional[str] = None) -> StorageResult[User]:
        """
        Create a user, or update ``user_id``.

        An empty password on update keeps the stored one.
        """
        self._require_admin("save user")
        form.validate_required(is_new=user_id is None)

        existing = None
        if user_id is not None:
            existing = self.find_user(user_id)
            if existing is None:
                raise NotFoundError("User", user_id)

        user = User(
            id=existing.id if existing else str(uuid4()),
            name=form.name,
            email=form.email,
            password=hash_password(form.password) if form.password else existing.password,
            role=form.role,
            created_at=existing.created_at if existing else utc_now_iso(),
        )

        result = await self._repository.save_user(user)
        if result.ok:
            if user.id == self._user.id:
                self._user = user
            self.close_editor(EditorKind.USER)
            await self.refresh()
        return result

    async def delete_user(self, user_id: str) -> StorageResult[None]:
        self._require_admin("delete user")
        if not self.can_delete_user(user_id):
            raise ActionUnavailableError("delete user", "An account cannot delete itself")

        result = await self._repository.delete_user(user_id)
        if result.ok:
            if self._editors[EditorKind.USER].entity_id == user_id:
                self.close_editor(EditorKind.USER)
            await self.refresh()
        return result

    async def update_profile(self, form: ProfileForm) -> StorageResult[User]:
        """Self-service edit of name, email and password. The role never changes here."""
        self._require_user()

        updates = {}
        if form.name is not None and form.name.strip():
            updates["name"] = form.name
        if form.email is not None and form.email.strip():
            updates["email"] = form.email
        if form.password:
            updates["password"] = hash_password(form.password)

        user = self._user.model_copy(update=updates)
        result = await self._repository.save_user(user)
        if result.ok:
            self._user = user
            await self.refresh()
        return result

    # =========================================================================
    # Guards
    # =========================================================================

    def _require_user(self) -> None:
        if self._user is None:
            raise AuthenticationError("Sesión no iniciada")

    def _require_admin(self, action: str) -> None:
        self._require_user()
        if not self._user.is_admin:
            raise AccessDeniedError(action)
