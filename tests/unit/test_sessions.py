"""
Unit tests for the session registry.
"""

from datetime import timedelta

import pytest

from bookcatalog.catalog.forms import CredentialsForm, RegistrationForm
from bookcatalog.catalog.sessions import SessionRegistry
from bookcatalog.catalog.state import Screen
from bookcatalog.exceptions import AuthenticationError, ExternalServiceError, ValidationError
from bookcatalog.storage.models import USERS_TABLE, UserRole

pytestmark = pytest.mark.asyncio


@pytest.fixture
def sessions(repository) -> SessionRegistry:
    return SessionRegistry(repository)


class TestLogin:

    async def test_login_opens_loaded_session(self, sessions):
        session_id, controller = await sessions.login(
            CredentialsForm(email="admin@biblioteca.test", password="admin123")
        )

        assert sessions.get(session_id) is controller
        assert controller.screen == Screen.ADMIN_BOOKS
        assert len(controller.books) == 2

    async def test_bad_credentials(self, sessions):
        with pytest.raises(AuthenticationError) as exc_info:
            await sessions.login(CredentialsForm(email="admin@biblioteca.test", password="x"))

        assert exc_info.value.message == "Credenciales inválidas o error de conexión"
        assert len(sessions) == 0

    async def test_close_signs_out(self, sessions):
        session_id, controller = await sessions.login(
            CredentialsForm(email="lector@biblioteca.test", password="lector123")
        )

        assert sessions.close(session_id)
        assert controller.user is None
        assert sessions.get(session_id) is None
        assert not sessions.close(session_id)


class TestRegister:

    async def test_register_creates_user_and_signs_in(self, sessions, fake_backend):
        _, controller = await sessions.register(
            RegistrationForm(name="Nora", email="nora@biblioteca.test", password="secreta")
        )

        assert controller.user.role == UserRole.USER
        assert controller.screen == Screen.CATALOG
        assert len(fake_backend.tables[USERS_TABLE]) == 3
        assert fake_backend.tables[USERS_TABLE][-1]["password"] != "secreta"

    async def test_duplicate_email(self, sessions):
        with pytest.raises(ValidationError) as exc_info:
            await sessions.register(
                RegistrationForm(name="Otro", email="lector@biblioteca.test", password="x")
            )
        assert exc_info.value.message == "El email ya está registrado"

    async def test_missing_fields(self, sessions):
        with pytest.raises(ValidationError) as exc_info:
            await sessions.register(RegistrationForm(name="", email="a@b.test", password="x"))
        assert exc_info.value.message == "Todos los campos son obligatorios"

    async def test_backend_failure(self, sessions, fake_backend):
        fake_backend.failing.add(USERS_TABLE)

        with pytest.raises(ExternalServiceError):
            await sessions.register(
                RegistrationForm(name="Nora", email="nora@biblioteca.test", password="secreta")
            )


class TestAccountPropagation:
    """Tests for pushing account edits into other open sessions."""

    async def test_sync_account_demotes_open_session(self, sessions, admin_user):
        _, controller = await sessions.login(
            CredentialsForm(email="admin@biblioteca.test", password="admin123")
        )

        sessions.sync_account(admin_user.model_copy(update={"role": UserRole.USER}))

        assert not controller.is_admin
        assert controller.screen == Screen.CATALOG

    async def test_revoke_account_closes_its_sessions(self, sessions):
        user_session, _ = await sessions.login(
            CredentialsForm(email="lector@biblioteca.test", password="lector123")
        )
        admin_session, _ = await sessions.login(
            CredentialsForm(email="admin@biblioteca.test", password="admin123")
        )

        assert sessions.revoke_account("user-1") == 1
        assert sessions.get(user_session) is None
        assert sessions.get(admin_session) is not None


class TestExpiry:
    """Tests for dropping sessions after their token lifetime."""

    async def test_expired_session_is_dropped_on_lookup(self, repository):
        sessions = SessionRegistry(repository, ttl=timedelta(0))
        session_id, controller = await sessions.login(
            CredentialsForm(email="lector@biblioteca.test", password="lector123")
        )

        assert sessions.get(session_id) is None
        assert len(sessions) == 0
        assert controller.user is None

    async def test_open_prunes_expired_sessions(self, repository):
        sessions = SessionRegistry(repository, ttl=timedelta(0))
        await sessions.login(CredentialsForm(email="lector@biblioteca.test", password="lector123"))
        await sessions.login(CredentialsForm(email="admin@biblioteca.test", password="admin123"))

        # The first session expired before the second one opened
        assert len(sessions) == 1

    async def test_live_session_is_kept(self, sessions):
        session_id, controller = await sessions.login(
            CredentialsForm(email="lector@biblioteca.test", password="lector123")
        )

        assert sessions.prune() == 0
        assert sessions.get(session_id) is controller

    async def test_container_uses_token_lifetime(self, services):
        assert services.sessions.ttl == timedelta(
            minutes=services.settings.access_token_expire_minutes
        )
