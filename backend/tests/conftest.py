"""Shared fixtures for SmartTracker tests."""

import os
import tempfile

# The module-level app in smarttracker.main creates its upload directory on import
if "UPLOAD_DIR" not in os.environ:
    os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="smarttracker-uploads-")

import pytest
from fastapi.testclient import TestClient

from smarttracker.config import Settings
from smarttracker.main import create_app
from smarttracker.models import StoredUpload
from smarttracker.services.activity import ActivityStore

PUBLIC_UPLOAD_URL = "http://testserver/uploads"


@pytest.fixture
def upload_dir(tmp_path):
    """Empty content directory for a single test."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def settings(upload_dir) -> Settings:
    """Settings pointing at the per-test content directory."""
    test_settings = Settings()
    test_settings.UPLOAD_DIR = str(upload_dir)
    test_settings.UPLOAD_URL_PATH = "/uploads"
    test_settings.PUBLIC_BASE_URL = ""
    test_settings.MAX_UPLOAD_SIZE = 5 * 1024 * 1024
    return test_settings


@pytest.fixture
def store() -> ActivityStore:
    """Fresh, empty activity store."""
    return ActivityStore()


@pytest.fixture
def make_upload(upload_dir):
    """Factory writing a file into the content directory as the upload handler would."""

    def _make(name: str = "photo.jpg", data: bytes = b"\xff\xd8\xff\xe0fake-jpeg") -> StoredUpload:
        path = upload_dir / name
        path.write_bytes(data)
        return StoredUpload(
            path=path,
            public_base_url=PUBLIC_UPLOAD_URL,
            original_filename=name,
            content_type="image/jpeg",
            size=len(data),
        )

    return _make


@pytest.fixture
def client(settings, store):
    """Test client over an application serving the fixture store."""
    app = create_app(settings=settings, store=store)
    with TestClient(app) as test_client:
        yield test_client
