"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.latency_logging import latency_logging_middleware
from src.api.routes import caregivers, health
from src.core.config import get_settings
from src.services.caregiver_store import init_caregiver_store, shutdown_caregiver_store

# Configure logging
logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Owns the caregiver store: it is created on startup and released on
    shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    await init_caregiver_store()

    yield

    await shutdown_caregiver_store()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Caregiver Profile API",
        description="Incrementally merged caregiver profiles for conversational onboarding",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Latency logging wraps the error handler so formatted errors are logged with their status
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    app.include_router(health.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(caregivers.router)
    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
