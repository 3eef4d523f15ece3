"""FastAPI application entrypoint and configuration.

This module provides the main FastAPI application factory that configures
logging, builds the field registry, sets up CORS middleware, includes the
field and track routers, maps geometry conversion errors to HTTP responses
and exposes a health check endpoint for monitoring.

Example:
    The application can be run with uvicorn:
        $ uvicorn map_multilinestring.main:app --reload

    Or imported and used programmatically:
        >>> from map_multilinestring.main import app
        >>> # Use app in ASGI server
"""

import logging
from collections.abc import Awaitable, Callable

import fastapi
from fastapi import responses
from fastapi.middleware import cors

from map_multilinestring.api import fields, tracks
from map_multilinestring.core import config
from map_multilinestring.fields import registry
from map_multilinestring.services import spatial_engine


def _geometry_error_handler(
    status_code: int,
) -> Callable[[fastapi.Request, Exception], Awaitable[responses.JSONResponse]]:
    async def handler(
        _request: fastapi.Request, exc: Exception
    ) -> responses.JSONResponse:
        return responses.JSONResponse(
            status_code=status_code,
            content={"detail": str(exc) or exc.__class__.__name__},
        )

    return handler


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Configures the root log level from settings, registers the field types
    once at start-up, includes the field and track routers and installs
    exception handlers: malformed submitted GeoJSON
    (``GeometryParseError``) becomes a 422, an unreadable stored geometry
    (``GeometryDecodingError``) a 500.

    Returns:
        Configured FastAPI application instance ready for ASGI server.
    """
    settings = config.get_settings()
    logging.basicConfig(level=settings.log_level)

    app = fastapi.FastAPI(title="Map Multi-LineString Field", version="0.1.0")
    app.state.field_registry = registry.build_registry(
        settings, spatial_engine.get_spatial_engine(settings)
    )

    app.include_router(fields.router)
    app.include_router(tracks.router)

    app.add_exception_handler(
        spatial_engine.GeometryParseError, _geometry_error_handler(422)
    )
    app.add_exception_handler(
        spatial_engine.GeometryDecodingError, _geometry_error_handler(500)
    )

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" if the service is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
