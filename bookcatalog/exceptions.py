"""
Exception hierarchy for the book catalog.

Every error a route can surface derives from ``CatalogException`` and
carries the HTTP status and machine code used by the error handlers.
``ConfigurationError`` is raised at startup only and never reaches a client.
"""

from typing import Optional


class ConfigurationError(RuntimeError):
    """Required runtime configuration is missing or invalid."""


class CatalogException(Exception):
    """Base exception for catalog errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(CatalogException):
    """Form input was rejected."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class AuthenticationError(CatalogException):
    """Credentials or session token are not valid."""

    def __init__(self, message: str = "Credenciales inválidas", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="AUTHENTICATION_FAILED",
            status_code=401,
            detail=detail,
        )


class AccessDeniedError(CatalogException):
    """The signed-in user lacks the role for this action."""

    def __init__(self, action: str):
        super().__init__(
            message="Acceso denegado",
            code="ACCESS_DENIED",
            status_code=403,
            detail=f"'{action}' requires the ADMIN role",
        )


class ActionUnavailableError(CatalogException):
    """The action is not offered for this target."""

    def __init__(self, action: str, detail: Optional[str] = None):
        super().__init__(
            message=f"Acción no disponible: {action}",
            code="ACTION_UNAVAILABLE",
            status_code=403,
            detail=detail,
        )


class NotFoundError(CatalogException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


class ExternalServiceError(CatalogException):
    """External service failure."""

    def __init__(self, service: str, detail: Optional[str] = None):
        super().__init__(
            message=f"{service} service unavailable",
            code="EXTERNAL_SERVICE_ERROR",
            status_code=503,
            detail=detail,
        )
