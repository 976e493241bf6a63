"""FastAPI dependency injection wiring.

Shared resources (the ``httpx.AsyncClient`` and the provider registry) live
on ``app.state``; they are created and released by the lifespan handler in
:mod:`repo_sitegen.interface.app`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import httpx
from fastapi import FastAPI, Request

from repo_sitegen.domain.ports.ai_provider import AIProvider
from repo_sitegen.domain.value_objects import (
    AiSettings,
    ProviderName,
    QualityMode,
    SiteConfig,
    resolve_site_config,
)
from repo_sitegen.infrastructure.config import Settings, get_settings
from repo_sitegen.infrastructure.provider_registry import ProviderRegistry
from repo_sitegen.services.generate_site import GenerateSiteUseCase

ProviderLookup = Callable[[ProviderName, QualityMode], AIProvider]


async def startup(app: FastAPI) -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    settings = get_settings()
    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout_seconds)
    )
    app.state.providers = ProviderRegistry(settings, app.state.http_client)


async def shutdown(app: FastAPI) -> None:
    """Release shared resources."""
    http_client: httpx.AsyncClient | None = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()
    app.state.http_client = None
    app.state.providers = None


def get_provider_lookup(request: Request) -> ProviderLookup:
    registry: ProviderRegistry | None = getattr(request.app.state, "providers", None)
    assert registry is not None, "startup() was not called"
    return registry.get


def resolve_request_config(raw: Mapping[str, Any], settings: Settings) -> SiteConfig:
    """Resolve the request's site configuration, filling ``ai`` from settings."""
    defaults = AiSettings(provider=settings.default_provider, quality=settings.default_quality)
    return resolve_site_config(raw, ai_defaults=defaults)


def build_use_case(provider: AIProvider, settings: Settings) -> GenerateSiteUseCase:
    return GenerateSiteUseCase(
        ai_provider=provider,
        readme_budget=settings.readme_budget,
        min_html_length=settings.min_html_length,
        retry_attempts=settings.retry_attempts,
        retry_base_delay_ms=settings.retry_base_delay_ms,
        refine_target_score=settings.refine_target_score,
        refine_max_iterations=settings.refine_max_iterations,
    )


def settings_dependency() -> Settings:
    return get_settings()
