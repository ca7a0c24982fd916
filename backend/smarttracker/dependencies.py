"""FastAPI dependencies for the activity store and upload settings."""
from fastapi import Request

from smarttracker.config import Settings
from smarttracker.services.activity import ActivityStore


def get_store(request: Request) -> ActivityStore:
    """
    Get the activity store owned by the running application.

    The store is created once in create_app() and lives until process exit.
    """
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    """Get the settings the application was built with."""
    return request.app.state.settings


def get_public_upload_url(request: Request) -> str:
    """
    Get the URL prefix uploaded images are served under.

    Uses PUBLIC_BASE_URL when configured, otherwise the request's own host.
    """
    settings = get_settings(request)
    if settings.PUBLIC_BASE_URL:
        return settings.PUBLIC_BASE_URL.rstrip("/")

    base_url = str(request.base_url).rstrip("/")
    return f"{base_url}/{settings.UPLOAD_URL_PATH.strip('/')}"
