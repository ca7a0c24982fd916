"""In-memory models for SmartTracker."""
from smarttracker.models.activity import Activity
from smarttracker.models.upload import StoredUpload

__all__ = ["Activity", "StoredUpload"]
