"""FastAPI application factories for the two listeners."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlinks.errors import SlugGenerationExhaustedError, StorageError

from .api import api_router
from .redirect import redirect_router
from .middleware.headers import ForwardedHeadersMiddleware
from .middleware.logging import LoggingMiddleware

logger = logging.getLogger("shortlinks.web")


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal storage error"},
    )


async def _exhausted_handler(request: Request, exc: SlugGenerationExhaustedError) -> JSONResponse:
    logger.critical(f"Slug generation exhausted: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Could not allocate a slug"},
    )


def create_management_app(service, config) -> FastAPI:
    """Create the link management API.

    Args:
        service: LinkService instance (may be set later on app.state)
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Link Shortener",
        description="Create, list and delete short links and inspect their clicks",
        version="1.0.0",
    )

    # Store instances in app state for access in routes
    app.state.service = service
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_methods=["OPTIONS", "GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware, surface="api")

    app.add_exception_handler(StorageError, _storage_error_handler)
    app.add_exception_handler(SlugGenerationExhaustedError, _exhausted_handler)

    app.include_router(api_router, tags=["Links"])

    return app


def create_redirect_app(service, config) -> FastAPI:
    """Create the redirect listener.

    Every path is treated as a slug, so docs and schema routes are disabled.
    """
    app = FastAPI(
        title="Link Shortener Redirects",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.service = service
    app.state.config = config

    app.add_middleware(ForwardedHeadersMiddleware)
    app.add_middleware(LoggingMiddleware, surface="redirect")

    app.include_router(redirect_router)

    return app
