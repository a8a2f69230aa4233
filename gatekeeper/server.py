"""Command-line entry point: serve the API with uvicorn."""

from __future__ import annotations

import uvicorn

from gatekeeper.core.config import settings


def run() -> None:
    """Start the HTTP server on APP_HOST:APP_PORT (default 0.0.0.0:3000)."""

    uvicorn.run(
        "gatekeeper.main:app",
        host=settings.app.host,
        port=settings.app.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
