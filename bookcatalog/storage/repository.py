"""
Catalog Repository

Data access for the hosted Supabase backend:
- Fetch-all, upsert and delete-by-id for ``users`` and ``books``
- Credential lookup by email + password
- Explicit ``StorageResult`` values instead of raised backend errors

Design Decisions:
1. No retries: a failed call is logged and reported once
2. Degraded values: failed fetches carry an empty list, failed lookups ``None``
3. Rows are validated on the way in; invalid rows are skipped, not fatal
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar

from loguru import logger
from pydantic import ValidationError as RowValidationError

from bookcatalog.security import verify_password
from bookcatalog.storage.models import BOOKS_TABLE, USERS_TABLE, Book, User


T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class StorageResult(Generic[T]):
    """Outcome of a backend call."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "StorageResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, value: Optional[T] = None) -> "StorageResult[T]":
        return cls(ok=False, value=value, error=error)


@dataclass
class RepositoryStats:
    """Counters for health reporting. ``last_error`` is cleared by the next call."""

    calls: int = 0
    failures: int = 0
    skipped_rows: int = 0
    last_error: Optional[str] = field(default=None)


class CatalogRepository:
    """
    Repository for catalog records on the hosted backend.

    Usage:
        client = await acreate_client(url, key)
        repo = CatalogRepository(client)

        books = (await repo.list_books()).value
        result = await repo.save_book(book)
        if not result.ok:
            ...
    """

    def __init__(self, client: Any):
        """
        Initialize repository.

        Args:
            client: Async Supabase client (anything exposing ``table(name)``
                with the PostgREST query builder interface)
        """
        self.client = client
        self.stats = RepositoryStats()

    # =========================================================================
    # Users
    # =========================================================================

    async def list_users(self) -> StorageResult[list[User]]:
        return await self._fetch_all(USERS_TABLE, User.from_row)

    async def save_user(self, user: User) -> StorageResult[User]:
        result = await self._upsert(USERS_TABLE, user.to_row())
        return StorageResult.success(user) if result.ok else StorageResult.failure(result.error)

    async def delete_user(self, user_id: str) -> StorageResult[None]:
        return await self._delete(USERS_TABLE, user_id)

    async def authenticate(self, email: str, password: str) -> StorageResult[User]:
        """
        Look up the user matching an email and password.

        Legacy rows holding a plaintext password are re-hashed after a
        successful match.

        Args:
            email: Login email
            password: Plain password as typed

        Returns:
            StorageResult whose value is the matching User, or ``None``
            when nothing matches or the backend failed.
        """
        if not email or not password:
            return StorageResult.success(None)

        self._begin_call()
        try:
            response = await (
                self.client.table(USERS_TABLE).select("*").eq("email", email).execute()
            )
        except Exception as e:
            self._record_failure(f"Login lookup failed: {e}")
            return StorageResult.failure(str(e))

        for row in response.data or []:
            try:
                user = User.from_row(row)
            except RowValidationError as e:
                self._record_skip(USERS_TABLE, row, e)
                continue

            verified, new_hash = verify_password(password, user.password)
            if not verified:
                continue

            if new_hash:
                upgraded = user.model_copy(update={"password": new_hash})
                if (await self._upsert(USERS_TABLE, upgraded.to_row())).ok:
                    logger.info(f"Upgraded stored password for user {user.id}")
                    user = upgraded
            return StorageResult.success(user)

        return StorageResult.success(None)

    # =========================================================================
    # Books
    # =========================================================================

    async def list_books(self) -> StorageResult[list[Book]]:
        return await self._fetch_all(BOOKS_TABLE, Book.from_row)

    async def save_book(self, book: Book) -> StorageResult[Book]:
        result = await self._upsert(BOOKS_TABLE, book.to_row())
        return StorageResult.success(book) if result.ok else StorageResult.failure(result.error)

    async def delete_book(self, book_id: str) -> StorageResult[None]:
        return await self._delete(BOOKS_TABLE, book_id)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _fetch_all(
        self,
        table: str,
        mapper: Callable[[dict[str, Any]], R],
    ) -> StorageResult[list[R]]:
        self._begin_call()
        try:
            response = await self.client.table(table).select("*").execute()
        except Exception as e:
            self._record_failure(f"Error fetching {table}: {e}")
            return StorageResult.failure(str(e), value=[])

        records: list[R] = []
        for row in response.data or []:
            try:
                records.append(mapper(row))
            except RowValidationError as e:
                self._record_skip(table, row, e)
        return StorageResult.success(records)

    async def _upsert(self, table: str, row: dict[str, Any]) -> StorageResult[None]:
        self._begin_call()
        try:
            await self.client.table(table).upsert(row).execute()
        except Exception as e:
            self._record_failure(f"Error saving {table} row {row.get('id')}: {e}")
            return StorageResult.failure(str(e))
        return StorageResult.success()

    async def _delete(self, table: str, record_id: str) -> StorageResult[None]:
        self._begin_call()
        try:
            await self.client.table(table).delete().eq("id", record_id).execute()
        except Exception as e:
            self._record_failure(f"Error deleting {table} row {record_id}: {e}")
            return StorageResult.failure(str(e))
        return StorageResult.success()

    def _begin_call(self) -> None:
        # last_error describes the most recent call only
        self.stats.calls += 1
        self.stats.last_error = None

    def _record_failure(self, message: str) -> None:
        self.stats.failures += 1
        self.stats.last_error = message
        logger.error(message)

    def _record_skip(self, table: str, row: dict[str, Any], error: RowValidationError) -> None:
        self.stats.skipped_rows += 1
        logger.warning(
            f"Skipping invalid {table} row {row.get('id')!r}: {error.error_count()} field error(s)"
        )
