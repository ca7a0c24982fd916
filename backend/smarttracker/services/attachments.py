"""Attachment manager linking stored image files to activities."""
from pathlib import Path
from typing import Optional, Tuple
from loguru import logger

from smarttracker.errors import StorageError


class AttachmentManager:
    """Produces image references for stored files and removes replaced ones."""

    @staticmethod
    def attach(stored_file_path: Path | str, public_base_url: str) -> Tuple[str, str]:
        """
        Build the public reference for a file already in the content directory.

        The file is neither moved nor validated here; the upload handler has
        done that before this call.

        Args:
            stored_file_path: Path the upload handler wrote the file to
            public_base_url: URL prefix the content directory is served under

        Returns:
            Tuple of (image_url, image_path)
        """
        path = Path(stored_file_path)
        image_url = f"{public_base_url.rstrip('/')}/{path.name}"
        return image_url, str(path)

    @staticmethod
    def release(image_path: Optional[str]) -> bool:
        """
        Remove the physical file behind an image reference.

        A missing file is not an error: the record and the filesystem may
        already agree after an earlier partial operation.

        Args:
            image_path: Internal storage path of the image, or None

        Returns:
            True if a file was removed, False otherwise

        Raises:
            StorageError: If the file exists but cannot be removed
        """
        if not image_path:
            return False

        path = Path(image_path)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Image file already missing, nothing to remove: {image_path}")
            return False
        except OSError as e:
            logger.error(f"✗ Failed to remove image file {image_path}: {e}")
            raise StorageError(f"Failed to remove image file: {path.name}") from e

        logger.info(f"✓ Removed image file {image_path}")
        return True
