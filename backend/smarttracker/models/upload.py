"""Hand-off record for files persisted by the upload handler."""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class StoredUpload:
    """A file already written to the content directory."""

    path: Path
    public_base_url: str  # URL prefix the content directory is served under
    original_filename: Optional[str] = None
    content_type: Optional[str] = None
    size: int = 0
