"""
FastAPI application entry point.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from webapi.config import get_settings
from webapi.routes import router
from webapi.telemetry import configure_telemetry


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    configure_telemetry(settings)
    app = FastAPI(title="WebApi", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
