"""
Pytest configuration and fixtures.
"""
from datetime import datetime
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from geofeed.api.dependencies import get_feed_service, get_notification_service
from geofeed.main import app
from geofeed.models.schemas import AuthorProfile, Post
from geofeed.repositories.memory import (
    InMemoryCategoryRepository,
    InMemoryCommentRepository,
    InMemoryPostRepository,
    InMemoryUserProfileService,
)
from geofeed.services.feed import FeedService
from geofeed.services.notifications import NotificationService

# Fixed clock shared by fixtures and assertions
NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def viewer_id():
    return uuid4()


@pytest.fixture
def author_id():
    return uuid4()


@pytest.fixture
def post_repo():
    """Fixture for an empty PostRepository."""
    return InMemoryPostRepository()


@pytest.fixture
def category_repo():
    """Fixture for a CategoryRepository with a few categories."""
    return InMemoryCategoryRepository(["Crime", "Traffic", "Lost Item"])


@pytest.fixture
def comment_repo(post_repo):
    """Fixture for a CommentRepository backed by post_repo."""
    return InMemoryCommentRepository(post_repo)


@pytest.fixture
def profile_service():
    """Fixture for an in-memory UserProfileService."""
    return InMemoryUserProfileService()


@pytest.fixture
def make_post(author_id, now):
    """Factory for posts with sensible defaults."""

    def _make_post(**overrides):
        fields = {
            "id": uuid4(),
            "title": "Test Post",
            "caption": "Something happened here",
            "category": "Crime",
            "created_at": now,
            "latitude": 0.0,
            "longitude": 0.0,
            "posted_by": author_id,
        }
        fields.update(overrides)
        return Post(**fields)

    return _make_post


@pytest.fixture
def sample_profile(author_id):
    """Fixture for the default author's profile."""
    return AuthorProfile(
        user_id=author_id,
        name="Author",
        profile_picture="https://cdn.example.com/author.png",
    )


@pytest.fixture
def feed_service(post_repo, category_repo, profile_service):
    return FeedService(
        post_repo=post_repo,
        category_repo=category_repo,
        profile_service=profile_service,
    )


@pytest.fixture
def notification_service(comment_repo, post_repo, profile_service, now):
    return NotificationService(
        comment_repo=comment_repo,
        post_repo=post_repo,
        profile_service=profile_service,
        clock=lambda: now,
    )


@pytest.fixture
def test_client(feed_service, notification_service):
    """
    TestClient fixture with dependency overrides.
    Uses in-memory repositories for isolation.
    """
    app.dependency_overrides[get_feed_service] = lambda: feed_service
    app.dependency_overrides[get_notification_service] = lambda: notification_service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()



@pytest.fixture
def span_exporter():
    """Collect spans opened through geofeed.core.telemetry in memory."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    with patch("geofeed.core.telemetry.get_tracer", return_value=provider.get_tracer("test")):
        yield exporter
