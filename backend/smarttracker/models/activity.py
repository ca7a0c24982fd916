"""Activity model for geotagged entries with an optional image."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Activity:
    """
    Activity model representing one geotagged entry.

    image_url and image_path are always set or cleared together. Instances
    are immutable; an update replaces the stored record as a whole, so a
    record handed to a caller never changes underneath it.
    """

    id: str
    latitude: float
    longitude: float
    timestamp: str  # ISO-8601, stored as given
    description: Optional[str] = None

    # Attached image
    image_url: Optional[str] = None
    image_path: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return self.image_path is not None

    def to_dict(self) -> dict:
        """Transform to the JSON-serializable API representation."""
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "description": self.description,
            "timestamp": self.timestamp,
            "imageUrl": self.image_url,
            "imagePath": self.image_path,
        }

    def __repr__(self):
        return f"<Activity(id={self.id}, lat={self.latitude}, lon={self.longitude}, image={self.has_image})>"
