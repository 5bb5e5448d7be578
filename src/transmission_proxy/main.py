"""Application entry point.

Usage:
    # Development with auto-reload
    uvicorn transmission_proxy.main:app --reload

    # Installed console script
    transmission-proxy
"""

from __future__ import annotations

import uvicorn

from transmission_proxy.core.config import get_settings
from transmission_proxy.factory import create_app


def run() -> None:
    """Serve the application with uvicorn."""
    settings = get_settings()

    uvicorn.run(
        "transmission_proxy.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.is_development,
        log_level=settings.logging.level.lower(),
    )


# Created on import so `uvicorn transmission_proxy.main:app` works
app = create_app()

if __name__ == "__main__":
    run()
