"""Application factory that serves the API and the public static directory."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .api import create_app as create_api_app
from .config import ServiceConfig, load_service_config
from .database import Database

logger = logging.getLogger("userservice.application")


def create_application(config: Optional[ServiceConfig] = None) -> FastAPI:
    """Create the ASGI application described by ``config``."""

    settings = config or load_service_config()

    database = Database(settings.database_path)
    database.initialize()

    app = create_api_app(database=database)
    app.state.config = settings

    # Mounted last so the API routes take precedence over static files.
    if settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(settings.public_dir), html=True), name="public")
        logger.info("Serving static files from %s", settings.public_dir)

    return app


__all__ = ["create_application"]
