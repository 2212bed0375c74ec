"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .web import web_router
from .middleware.logging import LoggingMiddleware


def create_app(
    registry,
    resolver,
    store,
    telemetry,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.

    The registry must already be rehydrated from ``store``.

    Args:
        registry: URLRegistry instance
        resolver: URLResolver instance
        store: Record store the registry is mirrored to
        telemetry: Telemetry sink
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="tinylinks",
        description="Short links with expiry and click analytics",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Store instances in app state for access in routes
    app.state.registry = registry
    app.state.resolver = resolver
    app.state.store = store
    app.state.telemetry = telemetry
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    # API first so /api/* never reaches the short code route
    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Web"])

    return app
