"""Upload handling for activity images.

Validates the inbound file against the image allow-list and streams it into
the content directory under a unique name.
"""

import random
import re
import time
from pathlib import Path
from typing import Optional
from fastapi import UploadFile
from loguru import logger

from smarttracker.config import Settings
from smarttracker.errors import PayloadTooLargeError, StorageError, ValidationError
from smarttracker.models import StoredUpload

ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif")
CHUNK_SIZE = 64 * 1024


def has_file(file: Optional[UploadFile]) -> bool:
    """Multipart forms send an empty part when no file was chosen."""
    return file is not None and bool(file.filename)


def is_allowed_image(filename: str, content_type: Optional[str]) -> bool:
    """Check both the file extension and the declared MIME type."""
    extension = Path(filename).suffix.lower()
    return bool(ALLOWED_TYPES.search(extension)) and bool(ALLOWED_TYPES.search(content_type or ""))


def unique_filename(original_filename: str) -> str:
    """Build a collision-resistant name that keeps the original extension."""
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}"
    return suffix + Path(original_filename).suffix


async def save_upload(file: UploadFile, settings: Settings, public_base_url: str) -> StoredUpload:
    """
    Validate and persist an uploaded image.

    Args:
        file: Inbound multipart file
        settings: Settings providing UPLOAD_DIR and MAX_UPLOAD_SIZE
        public_base_url: URL prefix the content directory is served under

    Returns:
        StoredUpload describing the written file

    Raises:
        ValidationError: If the file is not an allowed image type
        PayloadTooLargeError: If the file exceeds MAX_UPLOAD_SIZE
        StorageError: If the file cannot be written
    """
    if not is_allowed_image(file.filename, file.content_type):
        raise ValidationError("Only image files are allowed")

    destination = Path(settings.UPLOAD_DIR) / unique_filename(file.filename)
    size = 0

    try:
        with destination.open("wb") as out:
            while chunk := await file.read(CHUNK_SIZE):
                size += len(chunk)
                if size > settings.MAX_UPLOAD_SIZE:
                    break
                out.write(chunk)
    except OSError as e:
        destination.unlink(missing_ok=True)
        logger.error(f"✗ Failed to store upload {file.filename}: {e}")
        raise StorageError("Failed to store uploaded file") from e

    if size > settings.MAX_UPLOAD_SIZE:
        destination.unlink(missing_ok=True)
        limit_mb = settings.MAX_UPLOAD_SIZE / (1024 * 1024)
        raise PayloadTooLargeError(f"File too large. Maximum size is {limit_mb:g}MB")

    logger.info(f"✓ Stored upload {file.filename} as {destination.name} ({size} bytes)")

    return StoredUpload(
        path=destination,
        public_base_url=public_base_url,
        original_filename=file.filename,
        content_type=file.content_type,
        size=size,
    )
