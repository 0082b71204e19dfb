"""
Tests for PreviewSettings and startup validation.
"""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from preview_service.config import (
    DEFAULT_STATIC_DIR,
    PreviewSettings,
    get_settings,
    validate_config_on_startup,
)


class TestDefaults:
    def test_defaults(self):
        settings = PreviewSettings()
        assert settings.port == 3000
        assert settings.host == "127.0.0.1"
        assert settings.document_path == Path("resume.md").resolve()
        assert settings.static_dir == DEFAULT_STATIC_DIR
        assert settings.pdf_timeout_seconds == 60
        assert settings.headless is True
        assert settings.log_level == "INFO"

    def test_packaged_static_files_exist(self):
        settings = PreviewSettings()
        assert settings.index_path.is_file()
        assert settings.base_css_path.is_file()
        assert settings.custom_css_path.is_file()

    def test_document_name(self, document):
        assert PreviewSettings(document_path=document).document_name == "resume"


class TestEnvironment:
    def test_env_overrides(self, monkeypatch, document):
        monkeypatch.setenv("PREVIEW_DOCUMENT_PATH", str(document))
        monkeypatch.setenv("PREVIEW_PORT", "8080")
        monkeypatch.setenv("PREVIEW_HEADLESS", "false")
        settings = PreviewSettings()
        assert settings.document_path == document.resolve()
        assert settings.port == 8080
        assert settings.headless is False

    def test_paths_are_resolved(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        settings = PreviewSettings(document_path="notes/cv.md")
        assert settings.document_path == tmp_path.resolve() / "notes" / "cv.md"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidation:
    @pytest.mark.parametrize("port", [0, 70000])
    def test_port_range(self, port):
        with pytest.raises(ValidationError):
            PreviewSettings(port=port)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValidationError):
            PreviewSettings(pdf_timeout_seconds=-1)

    def test_log_level_normalized(self):
        assert PreviewSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            PreviewSettings(log_level="chatty")


class TestStartupValidation:
    def test_missing_document_is_only_a_warning(self, tmp_path, caplog):
        settings = PreviewSettings(document_path=tmp_path / "later.md")
        with caplog.at_level(logging.INFO, logger="preview_service.config"):
            validate_config_on_startup(settings)
        assert "Document does not exist yet" in caplog.text
        assert "Configuration loaded" in caplog.text

    def test_missing_stylesheet_warns(self, document, tmp_path, caplog):
        settings = PreviewSettings(document_path=document, base_css_path=tmp_path / "x.css")
        validate_config_on_startup(settings)
        assert "Stylesheet not found" in caplog.text
