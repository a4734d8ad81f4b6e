"""
CORS for the admin panel and the menu web app.

Origins come from CORS_ORIGIN as a comma-separated list. When it is unset
any origin is allowed; production startup refuses that configuration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from menu_shared.config.settings import settings

ANY_ORIGIN = ["*"]


def get_cors_origins() -> list[str]:
    origins = [origin.strip() for origin in settings.cors_origin.split(",")]
    return [origin for origin in origins if origin] or ANY_ORIGIN


def configure_cors(app: FastAPI) -> None:
    """Credentials are allowed because the browser session travels in cookies."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Requested-With", "Accept"],
        expose_headers=["X-Request-ID"],
        max_age=0 if settings.is_development else 600,
    )
