"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from repo_sitegen.domain.value_objects import ProviderName, QualityMode


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    anthropic_api_key: SecretStr | None = None
    openai_api_key: SecretStr | None = None
    google_api_key: SecretStr | None = None

    default_provider: ProviderName = ProviderName.ANTHROPIC
    default_quality: QualityMode = QualityMode.STANDARD

    anthropic_model_standard: str = "claude-sonnet-4-5"
    anthropic_model_high: str = "claude-sonnet-4-5"
    openai_model_standard: str = "gpt-4.1"
    openai_model_high: str = "gpt-4.1"
    google_model_standard: str = "gemini-2.5-flash"
    google_model_high: str = "gemini-2.5-pro"

    max_output_tokens: int = 16_000
    request_timeout_seconds: float = 120.0

    readme_budget: int = 2000
    min_html_length: int = 100
    retry_attempts: int = 3
    retry_base_delay_ms: int = 2000
    refine_target_score: float = 8.0
    refine_max_iterations: int = 3

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    def api_key_for(self, provider: ProviderName) -> str | None:
        secret = {
            ProviderName.ANTHROPIC: self.anthropic_api_key,
            ProviderName.OPENAI: self.openai_api_key,
            ProviderName.GOOGLE: self.google_api_key,
        }[provider]
        return secret.get_secret_value() if secret else None

    def model_for(self, provider: ProviderName, quality: QualityMode) -> str:
        return getattr(self, f"{provider.value}_model_{quality.value}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
