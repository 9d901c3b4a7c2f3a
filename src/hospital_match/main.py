"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from hospital_match.api.v1.router import api_router
from hospital_match.config import get_settings
from hospital_match.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)
from hospital_match.core.logging import get_logger, setup_logging
from hospital_match.core.security import security_headers_middleware
from hospital_match.dependencies import get_chat_service, get_qdrant_service

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    settings = get_settings()
    logger.info("Starting up Hospital Match API")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY not set - embeddings and intent parsing will fail")
    if not settings.elevenlabs_api_key:
        logger.info("ELEVENLABS_API_KEY not set - replies will be text only")
    yield
    logger.info("Shutting down Hospital Match API")
    # Only close clients that were actually created.
    if get_chat_service.cache_info().currsize:
        speech = get_chat_service().speech_service
        if speech is not None:
            await speech.aclose()
    if get_qdrant_service.cache_info().currsize:
        await get_qdrant_service().aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Hospital network search and confirmation API",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_credentials,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
    )

    # Add security headers middleware
    app.middleware("http")(security_headers_middleware)

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include API router with versioning
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()
