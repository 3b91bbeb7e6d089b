"""
Pytest configuration and shared fixtures for the Job Application Tracker tests.
"""
import os
import sys

# Settings are cached on first use, so the test environment must exist before
# any application module is imported.
os.environ.update({
    "TESTING": "true",
    "ENVIRONMENT": "testing",
    "AUTH_SECRET_KEY": "test-secret-key-for-identity-tokens-1234567890",
    "STORE_BACKEND": "memory",
    "LOG_LEVEL": "DEBUG",
})

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient

sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from job_tracker_app.backend.main import app
from job_tracker_app.backend.models.db.database import InMemoryDocumentStore
from job_tracker_app.backend.security import create_access_token
from job_tracker_app.backend.services.application_tracker import TrackerStorage, get_storage


USER_ID = "user-1"
OTHER_USER_ID = "user-2"


# Store Setup
@pytest.fixture
def store():
    """In-memory document store capped at 10 values per 'in' filter."""
    return InMemoryDocumentStore(in_filter_limit=10)


@pytest.fixture
def storage(store):
    return TrackerStorage(store, batch_size=10, max_workers=4)


@pytest.fixture
def test_client(storage):
    """Create a test client with the storage dependency overridden."""
    app.dependency_overrides[get_storage] = lambda: storage
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# Identity Fixtures
@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def other_user_id():
    return OTHER_USER_ID


@pytest.fixture
def auth_headers():
    """Bearer headers for the primary test user."""
    return {"Authorization": f"Bearer {create_access_token(USER_ID)}"}


@pytest.fixture
def other_auth_headers():
    """Bearer headers for a second, unrelated user."""
    return {"Authorization": f"Bearer {create_access_token(OTHER_USER_ID)}"}


# Sample Data
@pytest.fixture
def sample_application_data():
    return {
        "company": "Tech Innovations Inc",
        "title": "Senior Python Developer",
        "location": "Remote",
        "type": "Full-time",
        "url": "https://example.com/job/123",
        "notes": "Applied through company website",
    }


@pytest.fixture
def interview_time():
    return datetime(2024, 6, 3, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def sample_recruiter_data():
    return {
        "name": "Jane Recruiter",
        "company": "Tech Innovations Inc",
        "email": "jane@example.com",
        "linkedin": "https://www.linkedin.com/in/jane",
    }


@pytest.fixture
def reminder_due():
    return datetime.now(timezone.utc) + timedelta(days=2)
