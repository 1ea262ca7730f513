"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Service instances (repository, assistant, sessions)
- Session resolution and role checks
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookcatalog.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    ConfigurationError,
    ExternalServiceError,
)
from bookcatalog.security import ACCESS_TOKEN_EXPIRE_MINUTES, decode_access_token


# =============================================================================
# Configuration
# =============================================================================

def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Hosted backend
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Metadata assistant
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"

    # Session tokens
    secret_key: str = "dev-secret-change-me"
    access_token_expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES

    # HTTP
    host: str = "0.0.0.0"
    port: int = 8000

    # Comma-separated origins added to the environment's CORS defaults
    cors_origins: str = ""

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            supabase_url=_first_env("SUPABASE_URL", "VITE_SUPABASE_URL"),
            supabase_key=_first_env(
                "SUPABASE_ANON_KEY", "SUPABASE_KEY", "VITE_SUPABASE_ANON_KEY"
            ),
            gemini_api_key=_first_env("GEMINI_API_KEY", "API_KEY", "GOOGLE_API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", cls.gemini_model),
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)
            ),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            cors_origins=os.getenv("CORS_ALLOWED_ORIGINS", cls.cors_origins),
            environment=os.getenv("BOOKCATALOG_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )

    def require_backend(self) -> None:
        """
        Fail fast when the backend cannot be reached at all.

        Raises:
            ConfigurationError: SUPABASE_URL or SUPABASE_ANON_KEY is missing.
        """
        missing = [
            name for name, value in (
                ("SUPABASE_URL", self.supabase_url),
                ("SUPABASE_ANON_KEY", self.supabase_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing backend configuration: {', '.join(missing)}"
            )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    The backend client is created asynchronously during startup and handed
    in; everything else is built on first access.
    """

    def __init__(self, settings: Settings, backend_client: Any):
        self.settings = settings
        self.backend_client = backend_client
        self._repository = None
        self._assistant = None
        self._sessions = None

    @property
    def repository(self):
        """Get catalog repository instance."""
        if self._repository is None:
            from ..storage.repository import CatalogRepository
            self._repository = CatalogRepository(self.backend_client)
        return self._repository

    @property
    def assistant(self):
        """Get metadata assistant instance."""
        if self._assistant is None:
            from ..assistant.generator import create_assistant
            self._assistant = create_assistant(
                api_key=self.settings.gemini_api_key,
                model=self.settings.gemini_model,
            )
        return self._assistant

    @property
    def sessions(self):
        """Get session registry instance."""
        if self._sessions is None:
            from ..catalog.sessions import SessionRegistry
            self._sessions = SessionRegistry(
                self.repository,
                ttl=timedelta(minutes=self.settings.access_token_expire_minutes),
            )
        return self._sessions


# Global service container
_service_container: Optional[ServiceContainer] = None


def init_services(settings: Settings, backend_client: Any) -> ServiceContainer:
    """Initialize service container."""
    global _service_container
    _service_container = ServiceContainer(settings, backend_client)
    return _service_container


def get_service_container() -> ServiceContainer:
    """Get service container instance."""
    if _service_container is None:
        raise RuntimeError("Services not initialized. Start the app through its lifespan.")
    return _service_container


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_repository(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for catalog repository."""
    return container.repository


def get_assistant(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for metadata assistant."""
    return container.assistant


def get_sessions(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for session registry."""
    return container.sessions


# =============================================================================
# Authentication Dependencies
# =============================================================================

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_service_container),
) -> str:
    """
    Resolve the session id carried by the bearer token.

    Raises:
        AuthenticationError: Missing, invalid or expired token.
    """
    if credentials is None:
        raise AuthenticationError("Sesión no iniciada", detail="Bearer token required")

    session_id = decode_access_token(credentials.credentials, container.settings.secret_key)
    if session_id is None:
        raise AuthenticationError("Sesión expirada", detail="Invalid or expired token")
    return session_id


async def get_controller(
    session_id: str = Depends(get_session_id),
    sessions=Depends(get_sessions),
):
    """Dependency for the caller's catalog controller."""
    controller = sessions.get(session_id)
    if controller is None:
        raise AuthenticationError("Sesión expirada", detail="Session is closed")
    if not controller.is_authenticated:
        # Signed out from inside, e.g. the account was deleted
        sessions.close(session_id)
        raise AuthenticationError("Sesión expirada", detail="Account no longer exists")
    return controller


async def require_admin(controller=Depends(get_controller)):
    """Dependency for admin-only routes."""
    if not controller.is_admin:
        raise AccessDeniedError("admin area")
    return controller


# =============================================================================
# Result Helpers
# =============================================================================

def ensure_stored(result):
    """
    Surface a failed ``StorageResult`` to the client.

    Raises:
        ExternalServiceError: The backend rejected or never answered the write.
    """
    if not result.ok:
        raise ExternalServiceError("Backend", detail=result.error)
    return result.value
