"""Builds and caches one AI provider adapter per (provider, quality) pair."""

from __future__ import annotations

import logging

import httpx

from repo_sitegen.domain.exceptions import ConfigurationError
from repo_sitegen.domain.ports.ai_provider import AIProvider
from repo_sitegen.domain.value_objects import ProviderName, QualityMode
from repo_sitegen.infrastructure.anthropic_adapter import AnthropicAdapter
from repo_sitegen.infrastructure.config import Settings
from repo_sitegen.infrastructure.google_adapter import GoogleAdapter
from repo_sitegen.infrastructure.openai_adapter import OpenAIAdapter

logger = logging.getLogger(__name__)

API_KEY_ENV: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "ANTHROPIC_API_KEY",
    ProviderName.OPENAI: "OPENAI_API_KEY",
    ProviderName.GOOGLE: "GOOGLE_API_KEY",
}


def create_provider(
    provider: ProviderName,
    quality: QualityMode,
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> AIProvider:
    """Instantiate the adapter for *provider* with the model for *quality*."""
    api_key = settings.api_key_for(provider)
    if not api_key:
        raise ConfigurationError(
            f'API key is required for provider "{provider.value}". '
            f"Set the {API_KEY_ENV[provider]} environment variable."
        )
    model = settings.model_for(provider, quality)
    logger.info("Using %s model %s (%s quality)", provider.value, model, quality.value)

    if provider is ProviderName.ANTHROPIC:
        return AnthropicAdapter(
            api_key,
            model,
            http_client=http_client,
            max_output_tokens=settings.max_output_tokens,
        )
    if provider is ProviderName.OPENAI:
        return OpenAIAdapter(
            api_key,
            model,
            http_client=http_client,
            max_output_tokens=settings.max_output_tokens,
        )
    return GoogleAdapter(api_key, model, max_output_tokens=settings.max_output_tokens)


class ProviderRegistry:
    """Lazily creates adapters; OpenAI and Anthropic share one ``httpx.AsyncClient``.

    The Gemini adapter keeps the transport ``google-genai`` builds for it.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._http_client = http_client
        self._providers: dict[tuple[ProviderName, QualityMode], AIProvider] = {}

    def get(self, provider: ProviderName, quality: QualityMode) -> AIProvider:
        key = (provider, quality)
        if key not in self._providers:
            self._providers[key] = create_provider(
                provider, quality, self._settings, self._http_client
            )
        return self._providers[key]
