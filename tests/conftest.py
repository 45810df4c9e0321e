from unittest.mock import AsyncMock, MagicMock

import pytest

from renohub.application import FeedService, FeedStore
from renohub.config import Settings
from renohub.domain.repositories import IInspirationRepository

from helpers import FakeBackend


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file"""
    return Settings(
        _env_file=None,
        SUPABASE_URL="http://backend.test",
        SUPABASE_KEY="test-key",
        REALTIME_QUEUE_SIZE=10,
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store():
    return FeedStore()


@pytest.fixture
def repository():
    """Inspiration repository double; coroutines return Results set per test"""
    mock = MagicMock(spec=IInspirationRepository)
    mock.fetch_feed = AsyncMock()
    mock.fetch_item = AsyncMock()
    mock.fetch_categories = AsyncMock()
    mock.toggle_collect = AsyncMock()
    mock.toggle_like = AsyncMock()
    mock.toggle_follow = AsyncMock()
    return mock


@pytest.fixture
def feed_service(repository, store, test_settings):
    return FeedService(repository, store, test_settings, viewer_id="viewer-1")
