"""
Bookshelf service - main entry point.

Runs the API with uvicorn using the configured host and port.
"""

from __future__ import annotations

import uvicorn

from bookshelf.config import get_settings


def main():
    """Main entry point."""
    settings = get_settings()
    uvicorn.run(
        "bookshelf.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug and not settings.is_production,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
