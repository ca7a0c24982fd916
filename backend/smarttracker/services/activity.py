"""Activity store owning the in-memory collection of geotagged entries."""
import math
import threading
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Union
from loguru import logger

from smarttracker.errors import ActivityStoreError, NotFoundError, StorageError, ValidationError
from smarttracker.models import Activity, StoredUpload
from smarttracker.services.attachments import AttachmentManager

Coordinate = Union[str, float, int, None]

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def utc_now_iso() -> str:
    """Current time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _is_present(value: Coordinate) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _parse_coordinate(value: Coordinate, name: str) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name.capitalize()} must be a number")

    if not math.isfinite(parsed):
        raise ValidationError(f"{name.capitalize()} must be a finite number")
    return parsed


def _format_coordinate(value: float) -> str:
    """
    Shortest round-trip text for a coordinate.

    Integral values drop the fraction and exponent notation is used only
    below 1e-6 or from 1e21: 1.0 -> "1", 0.00001 -> "0.00001", 1e-07 -> "1e-7".
    """
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))

    text = repr(value)
    if "e" not in text:
        return text

    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    if -7 < exponent < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def location_string(activity: Activity) -> str:
    """The "<latitude>,<longitude>" string searched by location queries."""
    return f"{_format_coordinate(activity.latitude)},{_format_coordinate(activity.longitude)}"


def _timestamp_sort_key(activity: Activity) -> tuple:
    """
    Sort key ordering activities by instant.

    Unparseable timestamps rank below every parseable one.
    """
    try:
        instant = datetime.fromisoformat(activity.timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return (0, _OLDEST)

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return (1, instant)


def newest_first(activities: List[Activity]) -> List[Activity]:
    """Sort by timestamp descending, keeping insertion order on ties."""
    # sorted() stays stable with reverse=True
    return sorted(activities, key=_timestamp_sort_key, reverse=True)


class ActivityStore:
    """
    Store for activities and their attached images.

    Holds entries in insertion order and mints ids from a counter that only
    increases. Every operation runs under one lock, including the file
    removals it triggers, so a record and its image file change together.
    Stored records are immutable and replaced whole on update, so anything
    returned to a caller is a consistent snapshot.
    """

    def __init__(self, attachments: Optional[AttachmentManager] = None):
        self.attachments = attachments or AttachmentManager()
        self._activities: Dict[str, Activity] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._activities)

    def create(
        self,
        latitude: Coordinate,
        longitude: Coordinate,
        description: Optional[str] = None,
        timestamp: Optional[str] = None,
        upload: Optional[StoredUpload] = None,
    ) -> Activity:
        """
        Create an activity, optionally taking ownership of an uploaded image.

        Args:
            latitude: Required, must parse as a finite number
            longitude: Required, must parse as a finite number
            description: Optional free text
            timestamp: ISO-8601 string, defaults to now
            upload: Image file already written by the upload handler

        Returns:
            The created Activity

        Raises:
            ValidationError: If latitude or longitude is missing or malformed
        """
        try:
            if not _is_present(latitude) or not _is_present(longitude):
                raise ValidationError("Latitude and longitude are required")

            lat = _parse_coordinate(latitude, "latitude")
            lon = _parse_coordinate(longitude, "longitude")

            image_url, image_path = None, None
            if upload:
                image_url, image_path = self.attachments.attach(upload.path, upload.public_base_url)
        except ActivityStoreError:
            self._discard_upload(upload)
            raise

        with self._lock:
            activity = Activity(
                id=str(self._next_id),
                latitude=lat,
                longitude=lon,
                description=description or None,
                timestamp=timestamp or utc_now_iso(),
                image_url=image_url,
                image_path=image_path,
            )
            self._next_id += 1
            self._activities[activity.id] = activity

        logger.info(f"✓ Created activity {activity.id} (image={activity.has_image})")
        return activity

    def list_activities(self) -> List[Activity]:
        """All activities, most recent timestamp first."""
        with self._lock:
            return newest_first(list(self._activities.values()))

    def get(self, activity_id: str) -> Activity:
        """
        Look up an activity by id.

        Raises:
            NotFoundError: If no activity has that id
        """
        with self._lock:
            return self._get_locked(activity_id)

    def update(
        self,
        activity_id: str,
        latitude: Coordinate = None,
        longitude: Coordinate = None,
        description: Optional[str] = None,
        upload: Optional[StoredUpload] = None,
    ) -> Activity:
        """
        Update an activity.

        Absent or empty fields are left unchanged, so an update cannot clear
        the description. A new upload replaces the previous image, whose file
        is removed before the new record is stored. The updated record
        replaces the old one in a single step.

        Raises:
            NotFoundError: If no activity has that id
            ValidationError: If a given coordinate is malformed
            StorageError: If the previous image cannot be removed
        """
        try:
            with self._lock:
                current = self._get_locked(activity_id)
                changes = {}

                if _is_present(latitude):
                    changes["latitude"] = _parse_coordinate(latitude, "latitude")
                if _is_present(longitude):
                    changes["longitude"] = _parse_coordinate(longitude, "longitude")
                if description:
                    changes["description"] = description

                if upload:
                    self.attachments.release(current.image_path)
                    changes["image_url"], changes["image_path"] = self.attachments.attach(
                        upload.path, upload.public_base_url
                    )

                activity = replace(current, **changes)
                self._activities[activity.id] = activity
        except ActivityStoreError:
            self._discard_upload(upload)
            raise

        logger.info(f"✓ Updated activity {activity.id} (new image={upload is not None})")
        return activity

    def delete(self, activity_id: str) -> str:
        """
        Delete an activity and its image file.

        Returns:
            The id of the deleted activity

        Raises:
            NotFoundError: If no activity has that id
            StorageError: If the image file cannot be removed
        """
        with self._lock:
            activity = self._get_locked(activity_id)
            self.attachments.release(activity.image_path)
            del self._activities[activity.id]

        logger.info(f"✓ Deleted activity {activity_id}")
        return activity_id

    def search(self, query: Optional[str] = None) -> List[Activity]:
        """
        Case-insensitive substring search over description and location.

        An empty query matches everything. Results are newest first, the same
        order as list_activities().
        """
        with self._lock:
            activities = list(self._activities.values())

            if query:
                needle = query.lower()
                activities = [
                    activity for activity in activities
                    if needle in (activity.description or "").lower()
                    or needle in location_string(activity)
                ]

            return newest_first(activities)

    def _get_locked(self, activity_id: str) -> Activity:
        activity = self._activities.get(activity_id)
        if activity is None:
            raise NotFoundError("Activity not found")
        return activity

    def _discard_upload(self, upload: Optional[StoredUpload]) -> None:
        """Remove an upload the store did not take ownership of."""
        if not upload:
            return
        try:
            self.attachments.release(str(upload.path))
        except StorageError as e:
            logger.error(f"✗ Could not discard rejected upload {upload.path}: {e}")
