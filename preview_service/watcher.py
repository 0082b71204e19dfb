"""
File watcher for the markdown document.

Watches the document's parent directory with a watchdog Observer and reports
changes to the single watched file. Callbacks fire on the observer thread;
callers that touch event-loop state must marshal them onto the loop
(see app.py).
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatchError

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]
ErrorCallback = Callable[[WatchError], None]


def _normalize(path: Union[str, bytes, Path]) -> str:
    if isinstance(path, bytes):
        path = os.fsdecode(path)
    return os.path.normcase(os.path.abspath(str(path)))


class DocumentEventHandler(FileSystemEventHandler):
    """
    Filters directory events down to the watched document.

    Atomic saves (write temp file, rename over target) arrive as a move whose
    destination is the document, or as delete followed by create; both are
    reported as changes. Deleting or moving the document away is reported
    as a WatchError.
    """

    def __init__(
        self,
        document_path: Union[str, Path],
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ):
        super().__init__()
        self.document_path = _normalize(document_path)
        self.on_change = on_change
        self.on_error = on_error

    def _is_document(self, path) -> bool:
        return bool(path) and _normalize(path) == self.document_path

    def _changed(self) -> None:
        logger.info(f"File changed: {self.document_path}")
        self.on_change(self.document_path)

    def _failed(self, message: str) -> None:
        error = WatchError(message)
        logger.error(f"Watcher error: {error}")
        if self.on_error:
            self.on_error(error)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_document(event.src_path):
            self._changed()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_document(event.src_path):
            self._changed()

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if self._is_document(getattr(event, "dest_path", None)):
            self._changed()
        elif self._is_document(event.src_path):
            self._failed(f"Document moved away: {event.src_path}")

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_document(event.src_path):
            self._failed(f"Document deleted: {event.src_path}")


class DocumentWatcher:
    """
    Owns the watchdog Observer for one document.

    No event is emitted for the file's initial state; only changes after
    start() are reported. There is no debounce, so one save may produce
    several change notifications.
    """

    def __init__(
        self,
        document_path: Union[str, Path],
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.document_path = Path(document_path).resolve()
        self.handler = DocumentEventHandler(self.document_path, on_change, on_error)
        self._observer: Optional[Observer] = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> bool:
        """
        Start watching.

        Setup failures are logged and reported through on_error; the server
        keeps running without live reload.

        Returns:
            True if the observer is running
        """
        if self.is_watching:
            return True

        observer = Observer()
        try:
            observer.schedule(self.handler, str(self.document_path.parent), recursive=False)
            observer.start()
        except OSError as e:
            error = WatchError(f"Failed to watch {self.document_path}: {e}")
            logger.error(f"❌ {error} - live reload disabled")
            if self.handler.on_error:
                self.handler.on_error(error)
            return False

        self._observer = observer
        logger.info(f"👀 Watching: {self.document_path}")
        return True

    def stop(self) -> None:
        """Stop the observer thread. Safe to call when not started."""
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=5)
        logger.info("Watcher stopped")
