"""Process entry point: configure logging, build the app, serve it."""

from __future__ import annotations

import uvicorn

from .api import create_app
from .logger import configure_logging
from .settings import Settings


def run() -> None:
    settings = Settings()
    configure_logging(settings.logging)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )
