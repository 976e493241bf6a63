"""Value objects — self-validating site configuration.

:meth:`SiteConfig.from_mapping` accepts the raw (camelCase or snake_case)
configuration mapping as it appears in ``.gitlyte.json`` or a request body
and returns a fully-defaulted, immutable configuration.  Unknown enum values,
wrong types and out-of-range numbers are rejected with
:class:`ConfigurationError`; everything optional falls back to a documented
default.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from repo_sitegen.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SITE_INSTRUCTIONS_SOFT_LIMIT = 2000
MAX_CONTRIBUTORS_LIMIT = 500
DEFAULT_MAX_CONTRIBUTORS = 50


class ProviderName(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"


class QualityMode(str, Enum):
    STANDARD = "standard"
    HIGH = "high"


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class SitemapChangefreq(str, Enum):
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


def _unwrap_path(value: Any) -> Any:
    """Accept ``{"path": "..."}`` wherever a bare path string is allowed."""
    if isinstance(value, Mapping):
        if "path" not in value:
            raise ValueError("'path' is required")
        return value["path"]
    return value


class _ConfigSection(BaseModel):
    """camelCase keys on the wire, snake_case attributes; immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ── Sections ────────────────────────────────────────────────────────────────


class AiSettings(_ConfigSection):
    provider: ProviderName = ProviderName.ANTHROPIC
    quality: QualityMode = QualityMode.STANDARD


class ThemeSettings(_ConfigSection):
    mode: ThemeMode = ThemeMode.DARK
    toggle: StrictBool = False


class PromptSettings(_ConfigSection):
    site_instructions: StrictStr | None = None

    @model_validator(mode="after")
    def _warn_when_long(self) -> PromptSettings:
        if self.site_instructions and len(self.site_instructions) > SITE_INSTRUCTIONS_SOFT_LIMIT:
            logger.warning(
                "prompts.siteInstructions is %d characters long (recommended maximum %d); "
                "long instructions may crowd out repository context",
                len(self.site_instructions),
                SITE_INSTRUCTIONS_SOFT_LIMIT,
            )
        return self


class LogoSettings(_ConfigSection):
    path: StrictStr
    alt: StrictStr | None = None


class SeoSettings(_ConfigSection):
    title: StrictStr | None = None
    description: StrictStr | None = None
    keywords: tuple[StrictStr, ...] = ()
    og_image: StrictStr | None = None
    twitter_handle: StrictStr | None = None
    site_url: StrictStr | None = None

    @field_validator("og_image", mode="before")
    @classmethod
    def _og_image_path(cls, value: Any) -> Any:
        return _unwrap_path(value)


class SitemapSettings(_ConfigSection):
    enabled: StrictBool = True
    changefreq: SitemapChangefreq = SitemapChangefreq.WEEKLY
    priority: Annotated[float, Field(ge=0.0, le=1.0, allow_inf_nan=False)] = 0.8


class RobotsSettings(_ConfigSection):
    enabled: StrictBool = True
    additional_rules: tuple[StrictStr, ...] = ()


class ContributorsSettings(_ConfigSection):
    enabled: StrictBool = False
    max_contributors: Annotated[
        int, Field(strict=True, ge=1, le=MAX_CONTRIBUTORS_LIMIT)
    ] = DEFAULT_MAX_CONTRIBUTORS


class SiteConfig(_ConfigSection):
    """Fully-resolved site configuration."""

    ai: AiSettings = Field(default_factory=AiSettings)
    theme: ThemeSettings = Field(default_factory=ThemeSettings)
    prompts: PromptSettings = Field(default_factory=PromptSettings)
    logo: LogoSettings | None = None
    favicon: StrictStr | None = None
    seo: SeoSettings | None = None
    sitemap: SitemapSettings = Field(default_factory=SitemapSettings)
    robots: RobotsSettings = Field(default_factory=RobotsSettings)
    contributors: ContributorsSettings = Field(default_factory=ContributorsSettings)

    @field_validator("favicon", mode="before")
    @classmethod
    def _favicon_path(cls, value: Any) -> Any:
        return _unwrap_path(value)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any, info: ValidationInfo) -> Any:
        """Treat ``null`` sections as absent; merge caller ``ai`` defaults."""
        if not isinstance(data, Mapping):
            return data
        data = {key: value for key, value in data.items() if value is not None}
        defaults = (info.context or {}).get("ai_defaults")
        if not defaults:
            return data
        ai = data.get("ai")
        if ai is None:
            return {**data, "ai": dict(defaults)}
        if isinstance(ai, Mapping):
            return {**data, "ai": {**defaults, **ai}}
        return data

    @property
    def site_instructions(self) -> str | None:
        return self.prompts.site_instructions

    @property
    def site_url(self) -> str | None:
        return self.seo.site_url if self.seo else None

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any] | None = None,
        *,
        ai_defaults: AiSettings | None = None,
    ) -> SiteConfig:
        """Validate a raw configuration mapping and apply defaults.

        *ai_defaults* replaces the built-in provider/quality defaults for
        keys the mapping leaves out.
        """
        context = None
        if ai_defaults is not None:
            context = {"ai_defaults": ai_defaults.model_dump(mode="json")}
        try:
            return cls.model_validate({} if data is None else data, context=context)
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid site configuration: " + "; ".join(_describe(err) for err in exc.errors())
            ) from exc


def _describe(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"'{location}': {message}" if location else message


def resolve_site_config(
    data: Mapping[str, Any] | None = None, *, ai_defaults: AiSettings | None = None
) -> SiteConfig:
    """Resolve a raw configuration mapping into a :class:`SiteConfig`."""
    return SiteConfig.from_mapping(data, ai_defaults=ai_defaults)
