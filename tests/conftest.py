"""
Pytest configuration and fixtures for the book catalog tests.
"""

import asyncio
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bookcatalog.api.dependencies import ServiceContainer, Settings, get_service_container
from bookcatalog.api.main import create_app
from bookcatalog.catalog.state import CatalogController
from bookcatalog.security import hash_password
from bookcatalog.storage.models import BOOKS_TABLE, USERS_TABLE, User
from bookcatalog.storage.repository import CatalogRepository


# =============================================================================
# In-memory backend
# =============================================================================

class FakeQuery:
    """Chainable stand-in for the PostgREST query builder."""

    def __init__(self, backend: "FakeSupabase", table: str):
        self._backend = backend
        self._table = table
        self._op = "select"
        self._payload: Optional[dict[str, Any]] = None
        self._filters: list[tuple[str, Any]] = []

    def select(self, columns: str = "*") -> "FakeQuery":
        self._op = "select"
        return self

    def upsert(self, row: dict[str, Any]) -> "FakeQuery":
        self._op = "upsert"
        self._payload = dict(row)
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    async def execute(self) -> SimpleNamespace:
        backend = self._backend
        backend.calls.append((self._table, self._op))
        rows = backend.tables.setdefault(self._table, [])

        if self._op == "select":
            # Rows are read before any gate, like a request already in flight
            selected = [dict(r) for r in rows if self._matches(r)]
            gate = backend.gates.get(self._table)
            if gate is not None:
                backend.blocked += 1
                await gate.wait()
            if self._table in backend.failing:
                raise ConnectionError(f"{self._table} unavailable")
            return SimpleNamespace(data=selected)

        if self._table in backend.failing:
            raise ConnectionError(f"{self._table} unavailable")

        if self._op == "upsert":
            for index, row in enumerate(rows):
                if row.get("id") == self._payload["id"]:
                    rows[index] = self._payload
                    break
            else:
                rows.append(self._payload)
            return SimpleNamespace(data=[dict(self._payload)])

        removed = [r for r in rows if self._matches(r)]
        backend.tables[self._table] = [r for r in rows if not self._matches(r)]
        return SimpleNamespace(data=removed)


class FakeSupabase:
    """
    Minimal async Supabase client backed by lists of rows.

    ``failing`` names tables whose calls raise; ``gates`` holds selects on a
    table until the event is set.
    """

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {USERS_TABLE: [], BOOKS_TABLE: []}
        self.failing: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.blocked = 0
        self.calls: list[tuple[str, str]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


# =============================================================================
# Data Fixtures
# =============================================================================

ADMIN_PASSWORD = "admin123"
USER_PASSWORD = "lector123"


@pytest.fixture
def admin_row() -> dict:
    return {
        "id": "admin-1",
        "name": "Ana Admin",
        "email": "admin@biblioteca.test",
        "password": hash_password(ADMIN_PASSWORD),
        "role": "ADMIN",
        "created_at": "2024-01-01T00:00:00+00:00",
    }


@pytest.fixture
def user_row() -> dict:
    return {
        "id": "user-1",
        "name": "Luis Lector",
        "email": "lector@biblioteca.test",
        "password": hash_password(USER_PASSWORD),
        "role": "USER",
        "created_at": "2024-02-01T00:00:00+00:00",
    }


@pytest.fixture
def book_rows() -> list[dict]:
    return [
        {
            "id": "book-1",
            "title": "Cien años de soledad",
            "author": "Gabriel García Márquez",
            "description": "La historia de la familia Buendía en Macondo.",
            "category": "Ficción",
            "cover_url": "https://example.com/cien.jpg",
            "book_url": None,
            "stock": 3,
            "added_by": "admin-1",
        },
        {
            "id": "book-2",
            "title": "Sapiens",
            "author": "Yuval Noah Harari",
            "description": "Una breve historia de la humanidad.",
            "category": "No Ficción",
            "cover_url": "https://example.com/sapiens.jpg",
            "book_url": "https://example.com/sapiens.pdf",
            "stock": 0,
            "added_by": "admin-1",
        },
    ]


@pytest.fixture
def admin_user(admin_row) -> User:
    return User.from_row(admin_row)


@pytest.fixture
def regular_user(user_row) -> User:
    return User.from_row(user_row)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def fake_backend(admin_row, user_row, book_rows) -> FakeSupabase:
    backend = FakeSupabase()
    backend.tables[USERS_TABLE] = [admin_row, user_row]
    backend.tables[BOOKS_TABLE] = book_rows
    return backend


@pytest.fixture
def repository(fake_backend) -> CatalogRepository:
    return CatalogRepository(fake_backend)


@pytest.fixture
def controller(repository) -> CatalogController:
    return CatalogController(repository)


def get_test_settings() -> Settings:
    """Return settings configured for testing."""
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="test-anon-key",
        gemini_api_key=None,
        secret_key="test-secret",
        environment="test",
        debug=True,
    )


@pytest.fixture
def services(fake_backend) -> ServiceContainer:
    return ServiceContainer(get_test_settings(), fake_backend)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def app(services):
    """Create FastAPI application for testing."""
    application = create_app(get_test_settings())
    application.dependency_overrides[get_service_container] = lambda: services

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def login(client: AsyncClient, email: str, password: str) -> dict:
    """Log in and return the Authorization header."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest_asyncio.fixture
async def admin_headers(client, admin_row) -> dict:
    return await login(client, admin_row["email"], ADMIN_PASSWORD)


@pytest_asyncio.fixture
async def user_headers(client, user_row) -> dict:
    return await login(client, user_row["email"], USER_PASSWORD)
