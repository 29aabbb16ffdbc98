"""Shared fixtures."""

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from livecast.comments.service import LiveCommentService
from livecast.config import Settings
from livecast.main import build_live_comment_service, create_app


@pytest.fixture
def settings() -> Settings:
    """Settings for an isolated test application."""
    return Settings(
        environment="testing",
        log_level="WARNING",
        events_queue_size=50,
        events_heartbeat_interval=5.0,
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Fresh application with its own in-memory state."""
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def service(settings: Settings) -> LiveCommentService:
    """Live comment service wired like the application does it."""
    return build_live_comment_service(settings)
