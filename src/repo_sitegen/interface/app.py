"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from repo_sitegen.infrastructure.config import get_settings
from repo_sitegen.interface.dependencies import shutdown, startup
from repo_sitegen.interface.error_handlers import register_error_handlers
from repo_sitegen.interface.routes import router

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup(app)
    settings = get_settings()
    logger.info(
        "Site generator ready (default provider %s, %s quality)",
        settings.default_provider.value,
        settings.default_quality.value,
    )
    try:
        yield
    finally:
        await shutdown(app)


def create_app() -> FastAPI:
    """Build the application: routes, error envelopes and a liveness check."""
    app = FastAPI(
        title="Repository Site Generator",
        version=API_VERSION,
        description=(
            "Generates a static landing site from repository facts. An LLM "
            "analyses the project, derives a design system and writes the "
            "page; sitemap.xml and robots.txt are added when a site URL is set."
        ),
        lifespan=_lifespan,
    )
    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": API_VERSION}

    return app
