"""Music school reporting dashboard FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.core.auth.service import AuthService
from src.core.config import settings
from src.core.exceptions import AppException
from src.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from src.core.logging import setup_logging
from src.integrations.directus.dependencies import create_http_client
from src.modules.dashboard.router import router as dashboard_router
from src.modules.dashboard.sessions import ViewSessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging(settings.log_level)
    app.state.http_client = create_http_client()
    app.state.credential = await AuthService(app.state.http_client).acquire(settings)
    app.state.sessions = ViewSessionStore()
    logger.info("Dashboard started against %s", settings.directus_url)
    yield
    # Shutdown
    await app.state.http_client.aclose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Music School Dashboard",
        description="Reporting dashboard over the music school content API",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    @app.get("/health")
    async def health_check():
        credential = getattr(app.state, "credential", None)
        return {
            "status": "healthy",
            "authenticated": credential is not None and credential.is_usable,
        }

    # Routers
    app.include_router(dashboard_router, prefix="/api/v1")

    return app


app = create_app()
