"""
Pytest configuration and fixtures for Design Request Backend tests.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="design_request_test_")
os.environ["LEDGER_PATH"] = str(Path(_TEST_DATA_DIR) / "requests.json")
os.environ["MIRROR_DB_PATH"] = str(Path(_TEST_DATA_DIR) / "mirror.db")
os.environ["ADMIN_API_KEY"] = "test-admin-key-12345"
os.environ["S3_BUCKET_NAME"] = ""
os.environ["DEFER_ARTIFACTS"] = "false"

from design_request_backend.errors import PublishError
from design_request_backend.intake import IntakeService
from design_request_backend.ledger import RequestLedger
from design_request_backend.database import RequestMirror
from design_request_backend.main import app
from design_request_backend.storage import ArtifactPublisher


class FakeStorage:
    """In-memory object storage that records every upload."""

    def __init__(self):
        self.uploads: Dict[str, bytes] = {}
        self.content_types: List[str] = []

    def upload(self, key, data, content_type):
        self.uploads[key] = data
        self.content_types.append(content_type)
        return {"path": key}

    def public_url(self, path):
        return f"https://storage.example.test/{path}"


class FailingStorage(FakeStorage):
    """Object storage whose uploads always fail."""

    def upload(self, key, data, content_type):
        raise PublishError("simulated storage outage")


@pytest.fixture(scope="session", autouse=True)
def test_data_dir():
    """Cleanup the app's data directory after all tests."""
    yield _TEST_DATA_DIR
    shutil.rmtree(_TEST_DATA_DIR, ignore_errors=True)


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def admin_key():
    return "test-admin-key-12345"


@pytest.fixture
def valid_fields():
    """A complete, valid form submission."""
    return {
        "clientName": "Alice Cerney",
        "email": "alice@example.com",
        "phoneNumber": "+1 (555) 010-2030",
        "projectType": "website",
        "timeline": "1month",
        "budget": "1000-2500",
        "designDescription": "A portfolio site for a ceramics studio with an online booking page.",
        "referenceWebsites": "https://example.com, https://example.org",
        "colorPreferences": "Earthy greens and terracotta",
        "stylePreferences": "minimalist",
        "keyFeatures": "Booking form, gallery, contact page",
    }


@pytest.fixture
def ledger(tmp_path):
    return RequestLedger(tmp_path / "data" / "requests.json")


@pytest.fixture
def mirror(tmp_path):
    return RequestMirror(tmp_path / "data" / "mirror.db")


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def publisher(storage):
    return ArtifactPublisher(storage, prefix="design-requests/")


@pytest.fixture
def service(ledger, publisher, mirror):
    """A synchronous intake service wired to in-memory storage."""
    return IntakeService(ledger, publisher=publisher, mirror=mirror)


@pytest.fixture
def failing_publisher():
    return ArtifactPublisher(FailingStorage(), prefix="design-requests/")
