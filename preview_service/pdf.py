"""
PDF export for the rendered markdown document.

Builds a self-contained HTML document (stylesheets inlined, no network
fetches for CSS) and prints it with Playwright/Chromium. The HTML is injected
with page.set_content() rather than navigating to this server's own URL,
which would block on the request that is waiting for the PDF.
"""

import asyncio
import html as html_lib
import logging
import re
from pathlib import Path
from typing import Optional

from .config import PreviewSettings
from .document import render_document
from .errors import ExternalRendererError

logger = logging.getLogger(__name__)


class PdfOptions:
    """Page geometry for exported PDFs: US Letter with half-inch margins."""

    PAGE_FORMAT = "Letter"
    MARGIN = "0.5in"
    # Letter (8.5in x 11in) minus margins = 7.5in x 10in at 96 CSS px/in
    VIEWPORT_WIDTH = 720
    VIEWPORT_HEIGHT = 960
    DEVICE_SCALE_FACTOR = 1
    SCALE = 1
    PRINT_BACKGROUND = True

    LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

    @classmethod
    def margins(cls) -> dict:
        return {
            "top": cls.MARGIN,
            "right": cls.MARGIN,
            "bottom": cls.MARGIN,
            "left": cls.MARGIN,
        }


def sanitize_for_path(text: str) -> str:
    """
    Sanitize text for use in filenames and Content-Disposition headers.

    Removes special characters (except word chars, spaces, hyphens, dots)
    and replaces spaces with underscores.

    Example:
        >>> sanitize_for_path("John Doe (Resume)")
        "John_Doe__Resume_"
    """
    cleaned = re.sub(r"[^\w\s.-]", "_", text, flags=re.ASCII)
    return cleaned.replace(" ", "_")


def pdf_filename(settings: PreviewSettings) -> str:
    """Filename offered for the exported PDF, always ending in .pdf."""
    name = settings.pdf_filename or settings.document_name
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    return f"{sanitize_for_path(name) or 'document'}.pdf"


def build_pdf_html(
    content_html: str,
    base_css: str = "",
    custom_css: str = "",
    title: str = "Document",
) -> str:
    """
    Build a complete HTML document for PDF rendering.

    Args:
        content_html: Rendered markdown fragment
        base_css: Base markdown stylesheet
        custom_css: Project stylesheet, applied after the base one
        title: Document title

    Returns:
        Standalone HTML document with all CSS inlined
    """
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{html_lib.escape(title)}</title>
  <style>
{base_css}
{custom_css}
  </style>
</head>
<body>
  <div class="container">
    <article class="markdown-body">
{content_html}
    </article>
  </div>
</body>
</html>
"""


async def render_pdf(
    full_html: str,
    headless: bool = True,
    timeout_seconds: Optional[float] = None,
) -> bytes:
    """
    Print an HTML document to PDF bytes with a fresh Chromium instance.

    Each call launches and closes its own browser, so concurrent exports
    share no state.

    Args:
        full_html: Complete HTML document
        headless: Run Chromium headless
        timeout_seconds: Deadline for the whole browser session (None or 0: none)

    Returns:
        PDF bytes

    Raises:
        ExternalRendererError: Browser launch, rendering or deadline failure
    """
    # Import here to avoid loading Playwright on startup
    from playwright.async_api import async_playwright

    async def _render() -> bytes:
        async with async_playwright() as p:
            browser = await p.chromium.launch(
                headless=headless,
                args=PdfOptions.LAUNCH_ARGS,
            )
            try:
                page = await browser.new_page(
                    viewport={
                        "width": PdfOptions.VIEWPORT_WIDTH,
                        "height": PdfOptions.VIEWPORT_HEIGHT,
                    },
                    device_scale_factor=PdfOptions.DEVICE_SCALE_FACTOR,
                )
                await page.set_content(full_html, wait_until="load")
                return await page.pdf(
                    format=PdfOptions.PAGE_FORMAT,
                    print_background=PdfOptions.PRINT_BACKGROUND,
                    scale=PdfOptions.SCALE,
                    margin=PdfOptions.margins(),
                )
            finally:
                await browser.close()

    try:
        if timeout_seconds:
            pdf_bytes = await asyncio.wait_for(_render(), timeout=timeout_seconds)
        else:
            pdf_bytes = await _render()
    except asyncio.TimeoutError as e:
        raise ExternalRendererError(f"PDF rendering timed out after {timeout_seconds}s") from e
    except Exception as e:
        raise ExternalRendererError(f"PDF rendering failed: {e}") from e

    if not pdf_bytes:
        raise ExternalRendererError("PDF rendering returned empty result")
    return pdf_bytes


def _read_stylesheet(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ExternalRendererError(f"Failed to read stylesheet {path}: {e}") from e


async def export_document_pdf(settings: PreviewSettings) -> bytes:
    """
    Render the configured document to PDF.

    Raises:
        ReadError: The document could not be read
        ExternalRendererError: Stylesheets missing or browser failure
    """
    content_html = render_document(settings.document_path)
    full_html = build_pdf_html(
        content_html,
        base_css=_read_stylesheet(settings.base_css_path),
        custom_css=_read_stylesheet(settings.custom_css_path),
        title=settings.pdf_title or settings.document_name,
    )
    return await render_pdf(
        full_html,
        headless=settings.headless,
        timeout_seconds=settings.pdf_timeout_seconds,
    )
