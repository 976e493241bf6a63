"""Tests for site configuration resolution."""

from __future__ import annotations

import json
import logging

import pytest

from repo_sitegen.domain.exceptions import ConfigurationError
from repo_sitegen.domain.value_objects import (
    AiSettings,
    ProviderName,
    QualityMode,
    SitemapChangefreq,
    SiteConfig,
    ThemeMode,
    resolve_site_config,
)


def test_empty_mapping_uses_defaults() -> None:
    config = resolve_site_config({})

    assert config.ai.provider is ProviderName.ANTHROPIC
    assert config.ai.quality is QualityMode.STANDARD
    assert config.theme.mode is ThemeMode.DARK
    assert config.theme.toggle is False
    assert config.sitemap.enabled is True
    assert config.sitemap.changefreq is SitemapChangefreq.WEEKLY
    assert config.sitemap.priority == 0.8
    assert config.robots.enabled is True
    assert config.robots.additional_rules == ()
    assert config.contributors.enabled is False
    assert config.contributors.max_contributors == 50
    assert config.site_url is None


def test_camel_case_mapping_is_resolved() -> None:
    config = SiteConfig.from_mapping(
        {
            "ai": {"provider": "google", "quality": "high"},
            "theme": {"mode": "auto", "toggle": True},
            "prompts": {"siteInstructions": "Keep it short."},
            "logo": {"path": "logo.svg", "alt": "Logo"},
            "favicon": {"path": "favicon.ico"},
            "seo": {
                "title": "Fastgrid",
                "keywords": ["grid", "layout"],
                "ogImage": {"path": "og.png"},
                "twitterHandle": "fastgrid",
                "siteUrl": "https://acme.dev",
            },
            "robots": {"additionalRules": ["Disallow: /tmp"]},
            "contributors": {"enabled": True, "maxContributors": 20},
        }
    )

    assert config.ai.provider is ProviderName.GOOGLE
    assert config.ai.quality is QualityMode.HIGH
    assert config.theme.mode is ThemeMode.AUTO
    assert config.site_instructions == "Keep it short."
    assert config.logo.alt == "Logo"
    assert config.favicon == "favicon.ico"
    assert config.seo.keywords == ("grid", "layout")
    assert config.seo.og_image == "og.png"
    assert config.site_url == "https://acme.dev"
    assert config.robots.additional_rules == ("Disallow: /tmp",)
    assert config.contributors.max_contributors == 20


def test_snake_case_keys_are_accepted() -> None:
    config = SiteConfig.from_mapping({"seo": {"site_url": "https://acme.dev"}})

    assert config.site_url == "https://acme.dev"


@pytest.mark.parametrize(
    "data, fragment",
    [
        ({"ai": {"provider": "mistral"}}, "ai.provider"),
        ({"ai": {"quality": "ultra"}}, "ai.quality"),
        ({"theme": {"mode": "sepia"}}, "theme.mode"),
        ({"theme": {"toggle": "yes"}}, "theme.toggle"),
        ({"sitemap": {"changefreq": "sometimes"}}, "sitemap.changefreq"),
        ({"sitemap": {"priority": 1.5}}, "sitemap.priority"),
        ({"robots": {"additionalRules": "Disallow: /"}}, "robots.additionalRules"),
        ({"contributors": {"maxContributors": 501}}, "contributors.maxContributors"),
        ({"contributors": {"maxContributors": 1.5}}, "contributors.maxContributors"),
        ({"contributors": {"maxContributors": float("inf")}}, "contributors.maxContributors"),
        ({"contributors": {"maxContributors": float("nan")}}, "contributors.maxContributors"),
        ({"sitemap": {"priority": float("inf")}}, "sitemap.priority"),
        ({"seo": "https://acme.dev"}, "'seo'"),
        ({"logo": {"alt": "no path"}}, "logo.path"),
    ],
)
def test_invalid_values_raise_configuration_error(data: dict, fragment: str) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        SiteConfig.from_mapping(data)

    assert str(exc_info.value).startswith("Invalid site configuration: ")
    assert fragment in str(exc_info.value)


def test_non_mapping_configuration_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        SiteConfig.from_mapping(["not", "a", "mapping"])  # type: ignore[arg-type]


def test_json_infinity_is_a_configuration_error() -> None:
    data = json.loads('{"contributors": {"maxContributors": Infinity}}')

    with pytest.raises(ConfigurationError):
        SiteConfig.from_mapping(data)


def test_null_sections_use_defaults() -> None:
    config = SiteConfig.from_mapping({"sitemap": None, "seo": None, "ai": None})

    assert config.sitemap.enabled is True
    assert config.seo is None
    assert config.ai.provider is ProviderName.ANTHROPIC


def test_ai_defaults_fill_missing_keys_only() -> None:
    defaults = AiSettings(provider=ProviderName.GOOGLE, quality=QualityMode.HIGH)

    omitted = resolve_site_config({}, ai_defaults=defaults)
    partial = resolve_site_config({"ai": {"provider": "openai"}}, ai_defaults=defaults)

    assert omitted.ai == defaults
    assert partial.ai.provider is ProviderName.OPENAI
    assert partial.ai.quality is QualityMode.HIGH


def test_non_mapping_ai_section_is_rejected_even_with_defaults() -> None:
    defaults = AiSettings(provider=ProviderName.GOOGLE)

    with pytest.raises(ConfigurationError, match="'ai'"):
        resolve_site_config({"ai": "openai"}, ai_defaults=defaults)


def test_long_site_instructions_only_warn(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        config = SiteConfig.from_mapping({"prompts": {"siteInstructions": "x" * 2500}})

    assert len(config.site_instructions) == 2500
    assert "siteInstructions" in caplog.text
