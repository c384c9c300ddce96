"""Shared pytest fixtures and configuration.

Fixture Categories:
1. Settings: settings, settings_factory
2. Outline payloads: make_collection, make_document, make_user, page_payload
3. Infrastructure: respx_mock, client_factory, logfire_capture, test_client
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

try:
    import respx
except ImportError:
    respx = None

try:
    import logfire
except ImportError:
    logfire = None

# Suppress "logfire not configured" warnings; tests never configure it
os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

OUTLINE_URL = "https://outline.test"

# Fixed reference point for age calculations
NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    """Serialize a datetime the way Outline does."""
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def make_collection(collection_id: str, name: str | None = None, age_days: int = 10) -> dict:
    """Raw collection as returned by collections.list."""
    created = NOW - timedelta(days=age_days)
    return {
        "id": collection_id,
        "name": name if name is not None else f"Collection {collection_id}",
        "description": "",
        "createdAt": iso(created),
        "updatedAt": iso(created),
    }


def make_document(
    document_id: str,
    collection_id: str,
    title: str = "Doc",
    text: str = "hello",
    views: int = 1,
    revision: int = 1,
    age_days: int = 5,
) -> dict:
    """Raw document as returned by documents.list."""
    created = NOW - timedelta(days=age_days)
    return {
        "id": document_id,
        "title": title,
        "text": text,
        "createdAt": iso(created),
        "updatedAt": iso(created + timedelta(days=1)),
        "publishedAt": iso(created),
        "archivedAt": None,
        "deletedAt": None,
        "views": views,
        "revision": revision,
        "collectionId": collection_id,
    }


def make_user(user_id: str, name: str = "User") -> dict:
    """Raw user as returned by users.list."""
    return {
        "id": user_id,
        "name": name,
        "createdAt": iso(NOW - timedelta(days=100)),
        "lastActiveAt": iso(NOW - timedelta(hours=1)),
    }


def page_payload(items: list, limit: int, offset: int = 0, next_path: str = "") -> dict:
    """Outline list response body."""
    return {
        "data": items,
        "pagination": {"limit": limit, "offset": offset, "nextPath": next_path},
    }


@pytest.fixture
def settings_factory():
    """Build Settings with test defaults, overridable per test."""
    from outline_exporter.config import Settings

    def _factory(**overrides):
        values = {
            "outline_api_url": OUTLINE_URL,
            "outline_api_key": "test-outline-key",
            "page_limit": 25,
            "scrape_timeout": 5.0,
            "debug": False,
            "env": "local",
            "logfire_token": None,
        }
        values.update(overrides)
        return Settings(**values)

    return _factory


@pytest.fixture
def settings(settings_factory):
    """Application settings pointing at the mocked Outline instance."""
    return settings_factory()


@pytest.fixture
def respx_mock():
    """Respx mock fixture for HTTP mocking."""
    if respx is None:
        pytest.skip("respx not available")
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def client_factory(settings):
    """Build OutlineClients with backoff sleeps stubbed out."""
    from outline_exporter.services.outline_client import OutlineClient

    def _factory(client_settings=None, **kwargs):
        client = OutlineClient(client_settings or settings, **kwargs)
        client._sleep = AsyncMock()
        return client

    return _factory


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    This fixture patches Logfire to capture log calls for assertion.
    """
    if logfire is None:
        pytest.skip("logfire not available")

    captured_logs = []

    original_info = logfire.info
    original_warn = logfire.warn
    original_error = logfire.error

    def capture_info(*args, **kwargs):
        captured_logs.append(("info", args, kwargs))
        return original_info(*args, **kwargs)

    def capture_warn(*args, **kwargs):
        captured_logs.append(("warn", args, kwargs))
        return original_warn(*args, **kwargs)

    def capture_error(*args, **kwargs):
        captured_logs.append(("error", args, kwargs))
        return original_error(*args, **kwargs)

    with (
        patch("logfire.info", side_effect=capture_info),
        patch("logfire.warn", side_effect=capture_warn),
        patch("logfire.error", side_effect=capture_error),
    ):
        yield captured_logs


@pytest.fixture
def test_client(settings):
    """FastAPI TestClient for E2E tests (lifespan not run)."""
    from fastapi.testclient import TestClient

    from outline_exporter.main import create_app

    return TestClient(create_app(settings))
