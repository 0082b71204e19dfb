"""
Pytest fixtures for preview service tests.
"""

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from preview_service.app import create_app
from preview_service.config import PreviewSettings, get_settings


SAMPLE_MARKDOWN = """# Jane Doe

Senior Engineer
jane@example.com

## Experience

- Built **things**
- Fixed *other* things
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Mark test as needing a real Chromium install (skipped otherwise)"
    )


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep PREVIEW_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("PREVIEW_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def document(tmp_path):
    """Markdown document on disk."""
    path = tmp_path / "resume.md"
    path.write_text(SAMPLE_MARKDOWN, encoding="utf-8")
    return path


@pytest.fixture
def settings(document):
    """Settings pointing at the temporary document and the packaged static files."""
    return PreviewSettings(document_path=document, pdf_timeout_seconds=5)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Test client without startup hooks (no file watcher)."""
    return TestClient(app)


@pytest.fixture
def running_client(app):
    """Test client with startup/shutdown hooks run (file watcher active)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def mock_playwright():
    """
    Patch async_playwright() with a fake Chromium.

    Yields a namespace with .async_playwright, .browser and .page mocks;
    page.pdf returns a small fake PDF.
    """
    mock_page = AsyncMock()
    mock_page.pdf = AsyncMock(return_value=b"%PDF-1.4 fake pdf content")
    mock_browser = AsyncMock()
    mock_browser.new_page = AsyncMock(return_value=mock_page)

    chromium = MagicMock(launch=AsyncMock(return_value=mock_browser))
    with patch("playwright.async_api.async_playwright") as mock_async_playwright:
        mock_async_playwright.return_value.__aenter__ = AsyncMock(
            return_value=MagicMock(chromium=chromium)
        )
        mock_async_playwright.return_value.__aexit__ = AsyncMock(return_value=False)
        yield SimpleNamespace(
            async_playwright=mock_async_playwright,
            chromium=chromium,
            browser=mock_browser,
            page=mock_page,
        )
