"""
CORS Configuration

The catalog front end runs on a separate dev server, so browsers need
explicit cross-origin permission for the API.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    allowed_origins: List[str] = field(default_factory=list)

    # Bearer tokens travel in the Authorization header, not cookies
    allow_credentials: bool = False

    allowed_methods: List[str] = field(default_factory=lambda: [
        "GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"
    ])

    allowed_headers: List[str] = field(default_factory=lambda: [
        "Accept",
        "Content-Type",
        "Authorization",
        "X-Request-ID",
    ])

    expose_headers: List[str] = field(default_factory=lambda: ["X-Request-ID"])

    # Preflight cache (seconds)
    max_age: int = 3600

    # Development only
    allow_all_origins: bool = False


def _default_config(environment: str) -> CORSConfig:
    if environment == "production":
        return CORSConfig(max_age=7200)
    return CORSConfig(
        allowed_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        allow_all_origins=environment == "development",
    )


def get_cors_config(
    environment: Optional[str] = None,
    extra_origins: Optional[str] = None,
) -> CORSConfig:
    """
    Get CORS configuration for the environment.

    Args:
        environment: development, staging or production. Defaults to BOOKCATALOG_ENV.
        extra_origins: Comma-separated origins. Defaults to CORS_ALLOWED_ORIGINS.
    """
    if environment is None:
        environment = os.getenv("BOOKCATALOG_ENV", "development")
    if extra_origins is None:
        extra_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")

    config = _default_config(environment)

    if extra_origins:
        config.allowed_origins.extend(
            origin.strip() for origin in extra_origins.split(",") if origin.strip()
        )

    return config


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """
    Configure CORS middleware for the FastAPI application.

    Args:
        app: FastAPI application instance.
        config: CORS configuration. If None, loads from environment.
    """
    if config is None:
        config = get_cors_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if config.allow_all_origins else config.allowed_origins,
        allow_credentials=config.allow_credentials and not config.allow_all_origins,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
