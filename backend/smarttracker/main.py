"""FastAPI application entry point."""
from pathlib import Path
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from smarttracker.config import Settings, settings as default_settings
from smarttracker.errors import ActivityStoreError
from smarttracker.routers import activities
from smarttracker.services.activity import ActivityStore

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None, store: Optional[ActivityStore] = None) -> FastAPI:
    """
    Build the application with its own activity store.

    Args:
        settings: Settings to use (defaults to environment settings)
        store: Activity store to serve (defaults to a new, empty store)

    Returns:
        Configured FastAPI application
    """
    settings = settings or default_settings

    app = FastAPI(
        title="SmartTracker",
        description="Geotagged activity log with image attachments",
        version=VERSION,
    )
    app.state.settings = settings
    app.state.store = store or ActivityStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(activities.router)

    @app.exception_handler(ActivityStoreError)
    async def activity_store_error_handler(request: Request, exc: ActivityStoreError):
        if exc.status_code >= 500:
            logger.error(f"✗ {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"✗ Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Something went wrong!"})

    @app.on_event("startup")
    async def startup_event():
        """Log where the application serves from."""
        logger.info(f"✓ SmartTracker API running in {settings.ENVIRONMENT} mode")
        logger.info(f"✓ Upload directory: {Path(settings.UPLOAD_DIR).resolve()}")

    @app.get("/")
    async def index():
        """Service info and endpoint catalogue."""
        return {
            "message": "SmartTracker API is running",
            "version": VERSION,
            "endpoints": {
                "GET /api/activities": "Get all activities",
                "GET /api/activities/search?q=": "Search activities by description or location",
                "GET /api/activities/{id}": "Get activity by ID",
                "POST /api/activities": "Create new activity",
                "PUT /api/activities/{id}": "Update activity",
                "DELETE /api/activities/{id}": "Delete activity",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "environment": settings.ENVIRONMENT}

    # Uploaded images are served by filename; the directory must exist before mounting
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(settings.UPLOAD_URL_PATH, StaticFiles(directory=str(upload_dir)), name="uploads")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("smarttracker.main:app", host=default_settings.HOST, port=default_settings.PORT,
                reload=default_settings.is_development)
