"""
Setup script for the markdown preview server.

Allows development installation with `pip install -e .`
After installing, fetch the browser with `playwright install chromium`.
"""

from setuptools import setup, find_packages

setup(
    name="markdown-preview-server",
    version="0.2.0",
    description="Live markdown preview with on-demand PDF export",
    packages=find_packages(include=["preview_service", "preview_service.*"]),
    package_data={"preview_service": ["static/*.html", "static/*.js", "static/*.css", "static/css/*.css"]},
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "playwright>=1.40",
        "markdown>=3.5",
        "watchdog>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.25",
            "pypdf>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "markdown-preview=preview_service.cli:main",
        ],
    },
)
