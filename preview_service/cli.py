"""
Command-line entry point for the preview server.

Examples:
    # Serve resume.md from the current directory on port 3000
    markdown-preview

    # Serve another file on a different port
    markdown-preview notes/cv.md --port 8080

    # Render a PDF once without starting the server
    markdown-preview cv.md --export cv.pdf
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from .config import PreviewSettings, configure_logging
from .errors import PreviewError
from .hub import NotificationHub

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markdown-preview",
        description="Live markdown preview with on-demand PDF export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples:", 1)[1],
    )
    parser.add_argument(
        "document",
        nargs="?",
        default=None,
        help="Markdown file to serve (default: PREVIEW_DOCUMENT_PATH or resume.md)"
    )
    parser.add_argument("--host", default=None, help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port (default: 3000)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)"
    )
    parser.add_argument(
        "--no-headless",
        action="store_true",
        help="Show the Chromium window while exporting PDFs"
    )
    parser.add_argument(
        "--export", "-e",
        type=Path,
        default=None,
        metavar="PDF_PATH",
        help="Write the document to PDF_PATH and exit instead of serving"
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> PreviewSettings:
    """Environment/.env settings with command-line overrides applied."""
    overrides = {}
    if args.document:
        overrides["document_path"] = Path(args.document)
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.no_headless:
        overrides["headless"] = False
    return PreviewSettings(**overrides)


def export_once(settings: PreviewSettings, output_path: Path) -> int:
    """Render the document to output_path. Returns a process exit code."""
    from .pdf import export_document_pdf

    try:
        pdf_bytes = asyncio.run(export_document_pdf(settings))
    except PreviewError as e:
        logger.error(f"❌ PDF generation error: {e}")
        return 1

    try:
        output_path.write_bytes(pdf_bytes)
    except OSError as e:
        logger.error(f"❌ Failed to write {output_path}: {e}")
        return 1

    logger.info(f"✅ Wrote {output_path} ({len(pdf_bytes)} bytes)")
    return 0


class PreviewServer(uvicorn.Server):
    """
    uvicorn server that ends live reload streams when an exit signal arrives.

    uvicorn waits for open connections to finish before it runs the app's
    shutdown hooks, and an event stream only finishes once the hub closes it.
    """

    def __init__(self, config: uvicorn.Config, hub: NotificationHub):
        super().__init__(config)
        self.hub = hub
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def startup(self, sockets=None) -> None:
        self._loop = asyncio.get_running_loop()
        await super().startup(sockets=sockets)

    def handle_exit(self, sig, frame) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.hub.close_all)
        super().handle_exit(sig, frame)


def serve(settings: PreviewSettings) -> int:
    """Run the server until interrupted. Ctrl+C stops the watcher and exits 0."""
    from .app import create_app

    app = create_app(settings)

    print("\n🚀 Preview server running!")
    print(f"📝 Open http://{settings.host}:{settings.port} in your browser")
    print(f"👀 Watching: {settings.document_path}")
    print("\nPress Ctrl+C to stop the server\n")

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    try:
        PreviewServer(config, hub=app.state.hub).run()
    except KeyboardInterrupt:
        # uvicorn re-raises the captured SIGINT once shutdown has completed
        pass
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    configure_logging(settings.log_level)

    if args.export:
        return export_once(settings, args.export)
    return serve(settings)


if __name__ == "__main__":
    sys.exit(main())
