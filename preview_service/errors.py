"""
Error types for the preview service.

Read and render failures surface to HTTP clients as JSON errors. Watch and
broadcast failures are logged and absorbed by the component that hits them.
"""

from typing import Optional


class PreviewError(Exception):
    """Base class for all preview service errors."""


class ReadError(PreviewError):
    """The markdown document could not be read."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        message = f"Failed to read markdown file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class WatchError(PreviewError):
    """Filesystem watch setup or runtime failure."""


class ExternalRendererError(PreviewError):
    """Browser launch or PDF generation failed."""


class BroadcastWriteError(PreviewError):
    """A message could not be written to one subscriber channel."""

    def __init__(self, subscriber_id: str, reason: str):
        self.subscriber_id = subscriber_id
        super().__init__(f"[{subscriber_id}] {reason}")
