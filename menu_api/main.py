"""
REST API main application.
Entry point for the FastAPI server.

    uvicorn menu_api.main:app --port 3000
"""

import time
from typing import Any

from fastapi import FastAPI
from slowapi.middleware import SlowAPIMiddleware

from menu_api import __version__
from menu_api.core import (
    configure_cors,
    lifespan,
    register_exception_handlers,
    register_middlewares,
)
from menu_api.routers import API_PREFIX, api_router
from menu_shared.config.settings import settings
from menu_shared.infrastructure.correlation import CorrelationIdMiddleware
from menu_shared.security.rate_limit import limiter
from menu_shared.utils.responses import utc_timestamp

_started_at = time.monotonic()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Restaurant Menu API",
        description="Restaurants, menus, tables, orders and QR codes",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Rate limiting: global per-IP limit, login adds its own
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    register_middlewares(app)
    configure_cors(app)
    # Outermost, so every log line of the request carries its id
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    def health_check() -> dict[str, Any]:
        return {
            "status": "OK",
            "timestamp": utc_timestamp(),
            "uptime": round(time.monotonic() - _started_at, 3),
            "environment": settings.environment,
        }

    @app.get("/", tags=["health"])
    def root() -> dict[str, Any]:
        return {
            "message": "Restaurant Menu API",
            "version": API_PREFIX.rsplit("/", 1)[-1],
            "documentation": "/api/docs",
            "health": "/health",
        }

    return app


app = create_app()
