"""
Document source and markdown rendering.

The document is re-read from disk on every call; nothing is cached so the
preview always reflects the bytes currently saved by the editor.
"""

import logging
from pathlib import Path
from typing import Union

import markdown

from .errors import ReadError

logger = logging.getLogger(__name__)

# nl2br: single newlines become <br> (line breaks are significant)
# extra: tables, fenced code, footnotes, attribute lists, abbreviations
# sane_lists: do not merge ordered and unordered lists
MARKDOWN_EXTENSIONS = ["extra", "nl2br", "sane_lists"]


def read_document(path: Union[str, Path]) -> str:
    """
    Read the markdown document as UTF-8 text.

    Args:
        path: Path to the markdown file

    Returns:
        Current file contents

    Raises:
        ReadError: If the file is missing, unreadable or not valid UTF-8
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(str(path), str(e)) from e


def render_markdown(text: str) -> str:
    """
    Convert markdown text to an HTML fragment.

    A fresh Markdown instance is used per call since instances keep
    per-document state (footnotes, abbreviations).
    """
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, output_format="html")
    return md.convert(text)


def render_document(path: Union[str, Path]) -> str:
    """Read the document at path and return its rendered HTML fragment."""
    text = read_document(path)
    html = render_markdown(text)
    logger.debug(f"Rendered {path} ({len(text)} chars -> {len(html)} chars)")
    return html
