"""
FastAPI application for the markdown preview server.

Provides endpoints for the rendered document, a Server-Sent Events stream
for live reload, and on-demand PDF export via Playwright/Chromium.
The notification hub and file watcher are owned by the application
instance (app.state), created in create_app() and torn down on shutdown.
"""

import asyncio
import logging
from datetime import datetime
from io import BytesIO
from typing import AsyncIterator, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from . import __version__
from .config import PreviewSettings, get_settings, validate_config_on_startup
from .document import render_document
from .errors import ExternalRendererError, ReadError
from .hub import EVENT_UPDATE, NotificationHub
from .pdf import export_document_pdf, pdf_filename
from .watcher import DocumentWatcher

logger = logging.getLogger(__name__)

# How often an idle event stream checks whether its client went away
DISCONNECT_POLL_SECONDS = 1.0

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "Access-Control-Allow-Origin": "*",
}

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================

class RenderingResponse(BaseModel):
    """Rendered document fragment."""
    html: str


class ErrorResponse(BaseModel):
    """Error envelope returned with a 5xx status."""
    error: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    timestamp: datetime
    document: str
    document_exists: bool
    watching: bool
    subscribers: int


# ============================================================================
# Live Reload Stream
# ============================================================================

async def stream_events(hub: NotificationHub, request: Request) -> AsyncIterator[str]:
    """
    Yield SSE frames for one subscriber until it closes or the client leaves.

    The subscriber is registered when streaming starts and always
    unregistered on exit, including cancellation by the server.
    """
    subscriber = hub.register()
    try:
        while True:
            try:
                message = await asyncio.wait_for(
                    subscriber.next_message(), timeout=DISCONNECT_POLL_SECONDS
                )
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    break
                continue

            if message is None:
                break
            yield f"data: {message}\n\n"
    finally:
        hub.unregister(subscriber)


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/", include_in_schema=False)
async def index(request: Request):
    """Serve the preview page shell."""
    settings: PreviewSettings = request.app.state.settings
    if not settings.index_path.exists():
        return JSONResponse(status_code=404, content={"error": "index.html not found"})
    return FileResponse(settings.index_path)


@router.get(
    "/api/markdown",
    response_model=RenderingResponse,
    responses={500: {"model": ErrorResponse}},
)
async def get_rendering(request: Request):
    """Re-read and render the document on every call."""
    settings: PreviewSettings = request.app.state.settings
    try:
        html = render_document(settings.document_path)
    except ReadError as e:
        logger.error(f"Error reading markdown file: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to read markdown file"})
    return RenderingResponse(html=html)


@router.get("/events")
async def subscribe(request: Request) -> StreamingResponse:
    """
    Live reload event stream.

    Sends {"type":"connected"} first, then {"type":"update"} for every
    change to the document while the connection stays open.
    """
    hub: NotificationHub = request.app.state.hub
    return StreamingResponse(
        stream_events(hub, request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get(
    "/api/generate-pdf",
    responses={200: {"content": {"application/pdf": {}}}, 500: {"model": ErrorResponse}},
)
async def generate_pdf(request: Request):
    """
    Render the current document to PDF.

    Launches a fresh Chromium per request; may take several seconds.
    """
    settings: PreviewSettings = request.app.state.settings
    filename = pdf_filename(settings)

    logger.info("Starting PDF generation...")
    try:
        pdf_bytes = await export_document_pdf(settings)
    except (ReadError, ExternalRendererError) as e:
        logger.error(f"❌ PDF generation error: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to generate PDF"})

    logger.info(f"✅ PDF generated successfully: {filename} ({len(pdf_bytes)} bytes)")
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Report document and live-reload state.

    Always 200: a stopped watcher is a degraded mode, not an outage.
    """
    settings: PreviewSettings = request.app.state.settings
    watcher: Optional[DocumentWatcher] = request.app.state.watcher
    hub: NotificationHub = request.app.state.hub
    watching = watcher is not None and watcher.is_watching

    return HealthResponse(
        status="healthy" if watching else "degraded",
        timestamp=datetime.utcnow(),
        document=str(settings.document_path),
        document_exists=settings.document_path.is_file(),
        watching=watching,
        subscribers=hub.subscriber_count,
    )


# ============================================================================
# Application Factory
# ============================================================================

def _make_change_callback(hub: NotificationHub, loop: asyncio.AbstractEventLoop):
    """Bridge watcher-thread callbacks onto the event loop."""

    def on_change(path: str) -> None:
        try:
            loop.call_soon_threadsafe(hub.broadcast, EVENT_UPDATE)
        except RuntimeError:
            logger.debug(f"Event loop closed, dropping change event for {path}")

    return on_change


def create_app(
    settings: Optional[PreviewSettings] = None,
    hub: Optional[NotificationHub] = None,
) -> FastAPI:
    """
    Build the preview application.

    Args:
        settings: Configuration (defaults to get_settings())
        hub: Notification hub to use (a new one is created if omitted)

    Returns:
        Configured FastAPI app with watcher lifecycle hooks installed
    """
    settings = settings or get_settings()
    hub = hub or NotificationHub(queue_size=settings.subscriber_queue_size)

    app = FastAPI(
        title="Markdown Preview",
        version=__version__,
        description="Live markdown preview with on-demand PDF export",
    )
    app.state.settings = settings
    app.state.hub = hub
    app.state.watcher = None

    @app.on_event("startup")
    async def start_watcher():
        validate_config_on_startup(settings)
        loop = asyncio.get_running_loop()
        watcher = DocumentWatcher(
            settings.document_path,
            on_change=_make_change_callback(hub, loop),
        )
        watcher.start()
        app.state.watcher = watcher

    @app.on_event("shutdown")
    async def stop_watcher():
        watcher: Optional[DocumentWatcher] = app.state.watcher
        if watcher:
            watcher.stop()
        hub.close_all()
        logger.info("Shutting down server...")

    app.include_router(router)

    # Static assets; the catch-all root mount must come after the API routes
    if settings.vendor_css_dir and settings.vendor_css_dir.is_dir():
        app.mount("/css", StaticFiles(directory=settings.vendor_css_dir), name="css")
    if settings.static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")
        app.mount("/", StaticFiles(directory=settings.static_dir), name="public")
    else:
        logger.warning(f"Static dir not found, serving API only: {settings.static_dir}")

    return app
