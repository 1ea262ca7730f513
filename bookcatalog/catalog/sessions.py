"""
Session registry.

Maps session ids to their ``CatalogController``. Sessions live in process
memory only and expire together with the token that addresses them.
"""

import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from uuid import uuid4

from loguru import logger

from bookcatalog.catalog.forms import CredentialsForm, RegistrationForm
from bookcatalog.catalog.state import CatalogController, utc_now_iso
from bookcatalog.exceptions import AuthenticationError, ExternalServiceError, ValidationError
from bookcatalog.security import ACCESS_TOKEN_EXPIRE_MINUTES, hash_password
from bookcatalog.storage.models import User, UserRole
from bookcatalog.storage.repository import CatalogRepository


@dataclass
class _SessionEntry:
    controller: CatalogController
    expires_at: float  # time.monotonic() deadline

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class SessionRegistry:
    """
    Open, look up and close client sessions.

    Expired sessions are dropped when looked up and whenever a new session
    opens, so abandoned controllers do not outlive their token.
    """

    def __init__(
        self,
        repository: CatalogRepository,
        ttl: timedelta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    ):
        self.repository = repository
        self.ttl = ttl
        self._sessions: dict[str, _SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def login(self, form: CredentialsForm) -> tuple[str, CatalogController]:
        """
        Check credentials and open a session.

        Raises:
            AuthenticationError: No user matches, or the backend could not answer.
        """
        result = await self.repository.authenticate(form.email, form.password)
        if result.value is None:
            raise AuthenticationError("Credenciales inválidas o error de conexión")
        return await self.open(result.value)

    async def register(self, form: RegistrationForm) -> tuple[str, CatalogController]:
        """
        Create a USER account and sign it in.

        The duplicate-email check reads the current users and then inserts;
        two registrations racing on the same email can both succeed.

        Raises:
            ValidationError: Missing fields or email already registered.
            ExternalServiceError: The new row could not be saved.
        """
        form.validate_required()

        existing = await self.repository.list_users()
        if any(u.email == form.email for u in existing.value or []):
            raise ValidationError("El email ya está registrado")

        user = User(
            id=str(uuid4()),
            name=form.name,
            email=form.email,
            password=hash_password(form.password),
            role=UserRole.USER,
            created_at=utc_now_iso(),
        )
        saved = await self.repository.save_user(user)
        if not saved.ok:
            raise ExternalServiceError("Backend", detail=saved.error)

        logger.info(f"Registered user {user.id}")
        return await self.open(user)

    async def open(self, user: User) -> tuple[str, CatalogController]:
        self.prune()
        session_id = uuid4().hex
        controller = CatalogController(self.repository)
        self._sessions[session_id] = _SessionEntry(
            controller=controller,
            expires_at=time.monotonic() + self.ttl.total_seconds(),
        )
        await controller.sign_in(user)
        return session_id, controller

    def get(self, session_id: str) -> Optional[CatalogController]:
        """Live controller for ``session_id``; expired sessions are closed on sight."""
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        if entry.expired:
            self.close(session_id)
            return None
        return entry.controller

    def close(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        entry.controller.sign_out()
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def prune(self) -> int:
        """
        Drop expired sessions and sessions whose account was signed out.

        Returns:
            Number of sessions removed.
        """
        stale = [
            session_id for session_id, entry in self._sessions.items()
            if entry.expired or not entry.controller.is_authenticated
        ]
        for session_id in stale:
            self.close(session_id)
        if stale:
            logger.debug(f"Pruned {len(stale)} session(s)")
        return len(stale)

    # =========================================================================
    # Account changes
    # =========================================================================

    def sync_account(self, user: User) -> None:
        """Push an edited account into every session signed in as it."""
        for entry in self._sessions.values():
            entry.controller.adopt_account(user)

    def revoke_account(self, user_id: str) -> int:
        """
        Close every session signed in as a deleted account.

        Returns:
            Number of sessions closed.
        """
        doomed = [
            session_id for session_id, entry in self._sessions.items()
            if entry.controller.user is not None and entry.controller.user.id == user_id
        ]
        for session_id in doomed:
            self.close(session_id)
        if doomed:
            logger.info(f"Closed {len(doomed)} session(s) of deleted user {user_id}")
        return len(doomed)
