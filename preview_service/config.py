"""
Preview Service Configuration Module

Centralized configuration management with Pydantic validation.
All settings can be overridden via PREVIEW_* environment variables or a .env file.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_STATIC_DIR = PACKAGE_DIR / "static"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class PreviewSettings(BaseSettings):
    """
    Preview server configuration with validation.

    Validation happens at startup to fail fast on misconfiguration.
    """

    model_config = SettingsConfigDict(
        env_prefix="PREVIEW_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        validate_default=True,
    )

    # === Document ===
    document_path: Path = Field(
        default=Path("resume.md"),
        description="Markdown file to render and watch"
    )

    # === Server ===
    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=3000, ge=1, le=65535, description="Port to listen on")

    # === Static assets ===
    static_dir: Path = Field(
        default=DEFAULT_STATIC_DIR,
        description="Directory holding index.html, client.js and style.css"
    )
    vendor_css_dir: Optional[Path] = Field(
        default=None,
        description="Optional third-party CSS bundle served read-only at /css"
    )
    base_css_path: Path = Field(
        default=DEFAULT_STATIC_DIR / "css" / "markdown-base.css",
        description="Base markdown stylesheet inlined into exported PDFs"
    )
    custom_css_path: Path = Field(
        default=DEFAULT_STATIC_DIR / "style.css",
        description="Project stylesheet inlined into exported PDFs"
    )

    # === PDF export ===
    pdf_filename: Optional[str] = Field(
        default=None,
        description="Filename offered for exported PDFs (defaults to document name)"
    )
    pdf_title: Optional[str] = Field(
        default=None,
        description="<title> of the exported document (defaults to document name)"
    )
    pdf_timeout_seconds: float = Field(
        default=60,
        ge=0,
        le=600,
        description="Deadline for one PDF export in seconds (0 disables)"
    )
    headless: bool = Field(default=True, description="Run Chromium headless")

    # === Live reload ===
    subscriber_queue_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Pending messages buffered per event-stream client"
    )

    # === Logging ===
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("document_path", "static_dir", "base_css_path", "custom_css_path")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        """Store paths as absolute so the watcher and readers agree."""
        return v.expanduser().resolve()

    @field_validator("vendor_css_dir")
    @classmethod
    def resolve_optional_path(cls, v: Optional[Path]) -> Optional[Path]:
        if v is None:
            return None
        return v.expanduser().resolve()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known logging level name."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(allowed))}")
        return v_upper

    @property
    def document_name(self) -> str:
        """Document file name without extension."""
        return self.document_path.stem

    @property
    def index_path(self) -> Path:
        return self.static_dir / "index.html"


@lru_cache()
def get_settings() -> PreviewSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached. Call get_settings.cache_clear()
    after changing environment variables (tests, CLI overrides).
    """
    return PreviewSettings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the whole process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def validate_config_on_startup(settings: PreviewSettings) -> None:
    """
    Log the resolved configuration and warn about non-fatal problems.

    A missing document is only a warning: the file may be created after
    the server starts, and /api/markdown reports the read error meanwhile.
    """
    logger = logging.getLogger(__name__)

    if not settings.document_path.exists():
        logger.warning(f"Document does not exist yet: {settings.document_path}")
    if not settings.index_path.exists():
        logger.warning(f"index.html not found in static dir: {settings.static_dir}")
    for css_path in (settings.base_css_path, settings.custom_css_path):
        if not css_path.exists():
            logger.warning(f"Stylesheet not found, PDF export will fail: {css_path}")
    if settings.vendor_css_dir and not settings.vendor_css_dir.is_dir():
        logger.warning(f"Vendor CSS dir not found, /css disabled: {settings.vendor_css_dir}")

    logger.info(f"Configuration loaded: document={settings.document_path}")
    logger.info(f"  static_dir={settings.static_dir}")
    logger.info(f"  pdf_timeout={settings.pdf_timeout_seconds}s headless={settings.headless}")
