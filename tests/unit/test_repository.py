"""
Unit tests for the catalog repository and row mapping.
"""

import pytest

from bookcatalog.security import hash_password, verify_password
from bookcatalog.storage.models import BOOKS_TABLE, USERS_TABLE, Book, User, UserRole

pytestmark = pytest.mark.asyncio


class TestRowMapping:
    """Tests for the explicit row mappers."""

    async def test_book_round_trip_uses_snake_case(self, book_rows):
        book = Book.from_row(book_rows[1])

        assert book.cover_url == "https://example.com/sapiens.jpg"
        assert book.book_url == "https://example.com/sapiens.pdf"
        assert book.to_row() == book_rows[1]

    async def test_unknown_columns_are_ignored(self, book_rows):
        row = dict(book_rows[0], legacy_column="x")
        assert "legacy_column" not in Book.from_row(row).to_row()

    async def test_null_columns_use_defaults(self, book_rows):
        row = dict(book_rows[0], description=None, stock=None)
        book = Book.from_row(row)

        assert book.description == ""
        assert book.stock == 0
        assert not book.is_available

    async def test_user_role_is_parsed(self, admin_row):
        user = User.from_row(admin_row)
        assert user.role == UserRole.ADMIN
        assert user.is_admin
        assert user.to_row()["role"] == "ADMIN"


class TestFetch:
    """Tests for fetch-all."""

    async def test_list_books_in_fetch_order(self, repository):
        result = await repository.list_books()

        assert result.ok
        assert [b.id for b in result.value] == ["book-1", "book-2"]

    async def test_failure_returns_empty_list(self, repository, fake_backend):
        fake_backend.failing.add(BOOKS_TABLE)

        result = await repository.list_books()

        assert not result.ok
        assert result.value == []
        assert repository.stats.failures == 1
        assert repository.stats.last_error

    async def test_invalid_rows_are_skipped(self, repository, fake_backend):
        fake_backend.tables[BOOKS_TABLE].append({"id": "broken", "title": "Sin autor"})

        result = await repository.list_books()

        assert result.ok
        assert [b.id for b in result.value] == ["book-1", "book-2"]
        assert repository.stats.skipped_rows == 1

    async def test_success_clears_last_error(self, repository, fake_backend):
        fake_backend.failing.add(USERS_TABLE)
        await repository.list_users()
        fake_backend.failing.clear()

        await repository.list_users()

        assert repository.stats.last_error is None


class TestWrites:
    """Tests for upsert and delete."""

    async def test_upsert_inserts_then_replaces(self, repository, fake_backend, book_rows):
        book = Book.from_row(book_rows[0])

        updated = book.model_copy(update={"stock": 7})
        assert (await repository.save_book(updated)).ok
        assert len(fake_backend.tables[BOOKS_TABLE]) == 2
        assert fake_backend.tables[BOOKS_TABLE][0]["stock"] == 7

        new_book = book.model_copy(update={"id": "book-3"})
        assert (await repository.save_book(new_book)).ok
        assert len(fake_backend.tables[BOOKS_TABLE]) == 3

    async def test_failed_upsert_is_reported(self, repository, fake_backend, book_rows):
        fake_backend.failing.add(BOOKS_TABLE)

        result = await repository.save_book(Book.from_row(book_rows[0]))

        assert not result.ok
        assert "unavailable" in result.error

    async def test_delete_by_id(self, repository, fake_backend):
        assert (await repository.delete_user("user-1")).ok
        assert [r["id"] for r in fake_backend.tables[USERS_TABLE]] == ["admin-1"]

    async def test_failed_delete_is_reported(self, repository, fake_backend):
        fake_backend.failing.add(USERS_TABLE)
        assert not (await repository.delete_user("user-1")).ok


class TestAuthenticate:
    """Tests for credential lookup."""

    async def test_matching_credentials(self, repository):
        result = await repository.authenticate("admin@biblioteca.test", "admin123")

        assert result.ok
        assert result.value.id == "admin-1"

    async def test_wrong_password(self, repository):
        result = await repository.authenticate("admin@biblioteca.test", "nope")
        assert result.ok
        assert result.value is None

    async def test_unknown_email(self, repository):
        result = await repository.authenticate("nadie@biblioteca.test", "admin123")
        assert result.value is None

    async def test_empty_input_skips_backend(self, repository, fake_backend):
        result = await repository.authenticate("", "")

        assert result.value is None
        assert fake_backend.calls == []

    async def test_backend_failure_is_no_match(self, repository, fake_backend):
        fake_backend.failing.add(USERS_TABLE)

        result = await repository.authenticate("admin@biblioteca.test", "admin123")

        assert not result.ok
        assert result.value is None

    async def test_legacy_plaintext_password_is_upgraded(self, repository, fake_backend):
        fake_backend.tables[USERS_TABLE][1]["password"] = "clave-vieja"

        result = await repository.authenticate("lector@biblioteca.test", "clave-vieja")

        assert result.value.id == "user-1"
        stored = fake_backend.tables[USERS_TABLE][1]["password"]
        assert stored != "clave-vieja"
        assert verify_password("clave-vieja", stored) == (True, None)

    async def test_hashed_password_is_not_rewritten(self, repository, fake_backend):
        await repository.authenticate("admin@biblioteca.test", "admin123")
        assert (USERS_TABLE, "upsert") not in fake_backend.calls


class TestPasswordHashing:
    """Tests for the hashing helpers."""

    async def test_hash_verifies(self):
        hashed = hash_password("secreta")
        assert hashed.startswith("$pbkdf2-sha256$")
        assert verify_password("secreta", hashed) == (True, None)
        assert verify_password("otra", hashed)[0] is False

    async def test_missing_stored_value(self):
        assert verify_password("secreta", None) == (False, None)
