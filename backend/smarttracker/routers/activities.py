"""Activities router for creating, querying and deleting geotagged entries."""
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from loguru import logger

from smarttracker.config import Settings, settings as app_settings
from smarttracker.dependencies import get_public_upload_url, get_settings, get_store
from smarttracker.errors import ActivityStoreError, UnexpectedError
from smarttracker.services.activity import ActivityStore
from smarttracker.services.uploads import has_file, save_upload

router = APIRouter(prefix=app_settings.API_PREFIX, tags=["activities"])


@router.get("")
async def list_activities(store: ActivityStore = Depends(get_store)):
    """Get all activities, most recent first."""
    try:
        activities = store.list_activities()
    except Exception as e:
        logger.exception("✗ Failed to fetch activities")
        raise UnexpectedError("Failed to fetch activities") from e

    return [activity.to_dict() for activity in activities]


# Registered before /{activity_id} so "search" is not taken for an id
@router.get("/search")
async def search_activities(
    q: Optional[str] = Query(None, description="Text matched against description or 'lat,lon'"),
    store: ActivityStore = Depends(get_store),
):
    """
    Search activities by description or location.

    Without a query every activity is returned.
    """
    try:
        activities = store.search(q)
    except Exception as e:
        logger.exception("✗ Failed to search activities")
        raise UnexpectedError("Failed to search activities") from e

    return [activity.to_dict() for activity in activities]


@router.get("/{activity_id}")
async def get_activity(activity_id: str, store: ActivityStore = Depends(get_store)):
    """Get a single activity by id."""
    try:
        return store.get(activity_id).to_dict()
    except ActivityStoreError:
        raise
    except Exception as e:
        logger.exception(f"✗ Failed to fetch activity {activity_id}")
        raise UnexpectedError("Failed to fetch activity") from e


@router.post("", status_code=201)
async def create_activity(
    request: Request,
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    timestamp: Optional[str] = Form(None, description="ISO-8601, defaults to now"),
    image: Optional[UploadFile] = File(None),
    store: ActivityStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Create a new activity from form fields and an optional image.

    The image is validated and stored first; the store discards it again if
    the activity itself is rejected.
    """
    try:
        upload = None
        if has_file(image):
            upload = await save_upload(image, settings, get_public_upload_url(request))

        activity = store.create(
            latitude=latitude,
            longitude=longitude,
            description=description,
            timestamp=timestamp,
            upload=upload,
        )
    except ActivityStoreError:
        raise
    except Exception as e:
        logger.exception("✗ Error creating activity")
        raise UnexpectedError("Failed to create activity") from e

    return activity.to_dict()


@router.put("/{activity_id}")
async def update_activity(
    activity_id: str,
    request: Request,
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: ActivityStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Update an activity.

    Empty fields are ignored. A new image replaces the old one, whose file
    is deleted.
    """
    try:
        upload = None
        if has_file(image):
            upload = await save_upload(image, settings, get_public_upload_url(request))

        activity = store.update(
            activity_id,
            latitude=latitude,
            longitude=longitude,
            description=description,
            upload=upload,
        )
    except ActivityStoreError:
        raise
    except Exception as e:
        logger.exception(f"✗ Error updating activity {activity_id}")
        raise UnexpectedError("Failed to update activity") from e

    return activity.to_dict()


@router.delete("/{activity_id}")
async def delete_activity(activity_id: str, store: ActivityStore = Depends(get_store)):
    """Delete an activity together with its image file."""
    try:
        deleted_id = store.delete(activity_id)
    except ActivityStoreError:
        raise
    except Exception as e:
        logger.exception(f"✗ Error deleting activity {activity_id}")
        raise UnexpectedError("Failed to delete activity") from e

    return {
        "message": "Activity deleted successfully",
        "id": deleted_id,
    }
