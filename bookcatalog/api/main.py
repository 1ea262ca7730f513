"""
Book Catalog API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import Depends, FastAPI
from supabase import acreate_client

from bookcatalog import __version__
from .schemas import HealthResponse
from .routes import auth_router, books_router, session_router, users_router
from .middleware import (
    LoggingConfig,
    get_cors_config,
    setup_cors,
    setup_exception_handlers,
    setup_logging,
)
from .dependencies import (
    ServiceContainer,
    Settings,
    get_service_container,
    get_settings,
    init_services,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup:
    - Abort when the backend credentials are missing
    - Create the async backend client and the service container

    Shutdown:
    - Close every open session
    """
    settings = app.state.settings
    logger.info(f"Starting book catalog in {settings.environment} mode")

    settings.require_backend()
    client = await acreate_client(settings.supabase_url, settings.supabase_key)

    services = init_services(settings, client)
    app.state.services = services

    if not services.assistant.is_configured:
        logger.warning("GEMINI_API_KEY not set; metadata generation will return fallback text")

    logger.info("Book catalog started successfully")
    try:
        yield
    finally:
        logger.info("Shutting down book catalog...")
        services.sessions.close_all()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Book Catalog",
        description="Book catalog with admin management and AI-assisted metadata.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ==========================================================================
    # Middleware (first added = innermost)
    # ==========================================================================

    setup_logging(
        app,
        config=LoggingConfig(log_request_body=settings.debug),
        structured=settings.environment != "development",
    )
    setup_exception_handlers(app)
    setup_cors(app, config=get_cors_config(settings.environment, settings.cors_origins))

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api/v1"
    for router in (auth_router, session_router, books_router, users_router):
        app.include_router(router, prefix=api_prefix)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Book Catalog",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check(
        services: ServiceContainer = Depends(get_service_container),
    ) -> HealthResponse:
        """
        Health check endpoint.

        The backend is reported degraded while its most recent call failed.
        """
        stats = services.repository.stats
        backend_healthy = stats.last_error is None

        components = {
            "backend": {
                "status": "healthy" if backend_healthy else "degraded",
                "calls": stats.calls,
                "failures": stats.failures,
                "skipped_rows": stats.skipped_rows,
            },
            "assistant": "configured" if services.assistant.is_configured else "not_configured",
            "sessions": len(services.sessions),
        }

        return HealthResponse(
            status="healthy" if backend_healthy else "degraded",
            version=__version__,
            components=components,
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    # Sessions live in process memory, so a single worker only
    uvicorn.run(
        "bookcatalog.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
