"""
Preview Service - Live markdown preview with on-demand PDF export.

Serves a single markdown document as an HTML page, pushes live-reload
events to open browser tabs when the file changes, and renders the page
to PDF using Playwright/Chromium.
"""

__version__ = "0.2.0"
