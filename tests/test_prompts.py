"""Tests for prompt builders and their formatting helpers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from repo_sitegen.domain.entities import (
    ColorPalette,
    DesignColors,
    DesignSystem,
    Evaluation,
    Typography,
)
from repo_sitegen.domain.value_objects import SiteConfig, ThemeMode, ThemeSettings
from repo_sitegen.services.prompts import (
    build_asset_section,
    build_refine_prompt,
    build_seo_section,
    build_stats_section,
    build_theme_section,
    format_count,
    format_relative_date,
)

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def design() -> DesignSystem:
    return DesignSystem(
        colors=DesignColors(
            light=ColorPalette("blue-600", "indigo-600", "purple-500", "white", "gray-900"),
            dark=ColorPalette("blue-400", "indigo-400", "purple-400", "gray-950", "gray-50"),
        ),
        typography=Typography(heading_font="Inter", body_font="Inter"),
    )


@pytest.mark.parametrize(
    "count, expected",
    [(0, "0"), (999, "999"), (1234, "1.2K"), (12_345, "12.3K"), (1_500_000, "1.5M")],
)
def test_format_count(count: int, expected: str) -> None:
    assert format_count(count) == expected


@pytest.mark.parametrize(
    "iso_date, expected",
    [
        ("2024-03-01T00:00:00Z", "today"),
        ("2024-02-29T00:00:00Z", "yesterday"),
        ("2024-02-26T00:00:00Z", "4 days ago"),
        ("2024-02-20T00:00:00Z", "1 week ago"),
        ("2024-01-01T00:00:00Z", "2 months ago"),
        ("2021-06-01T00:00:00Z", "2 years ago"),
        ("not a date", "unknown"),
    ],
)
def test_format_relative_date(iso_date: str, expected: str) -> None:
    assert format_relative_date(iso_date, now=NOW) == expected


# ── Theme ───────────────────────────────────────────────────────────────────


def test_single_palette_for_light_mode(design: DesignSystem) -> None:
    section = build_theme_section(design, ThemeSettings(mode=ThemeMode.LIGHT))

    assert section.startswith("DESIGN SYSTEM (light mode):")
    assert "- Primary color: blue-600" in section
    assert "blue-400" not in section
    assert "THEME TOGGLE" not in section


def test_auto_without_toggle_falls_back_to_dark(
    design: DesignSystem, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING):
        section = build_theme_section(design, ThemeSettings(mode=ThemeMode.AUTO))

    assert section.startswith("DESIGN SYSTEM (dark mode):")
    assert "- Background: gray-950" in section
    assert 'Falling back to "dark"' in caplog.text


def test_toggle_lists_both_palettes(design: DesignSystem) -> None:
    section = build_theme_section(design, ThemeSettings(mode=ThemeMode.AUTO, toggle=True))

    assert "LIGHT MODE COLORS:\n- Primary: blue-600" in section
    assert "DARK MODE COLORS:\n- Primary: blue-400" in section
    assert "Default mode: system preference" in section
    assert "darkMode: 'class'" in section
    assert "localStorage" in section


# ── Assets / SEO / Stats ────────────────────────────────────────────────────


def test_asset_section_empty_without_logo_or_favicon() -> None:
    assert build_asset_section(SiteConfig()) == ""


def test_asset_section_alt_defaults_to_path() -> None:
    config = SiteConfig.from_mapping({"logo": {"path": "img/logo.svg"}, "favicon": {"path": "fav.ico"}})

    section = build_asset_section(config)

    assert "- Alt text: img/logo.svg" in section
    assert '<link rel="icon" href="fav.ico">' in section


def test_seo_section_defaults_to_repository_facts(repo) -> None:
    section = build_seo_section(repo, SiteConfig())

    assert '<meta property="og:title" content="fastgrid">' in section
    assert '<meta name="keywords" content="grid, layout">' in section
    assert '<meta property="og:url" content="https://github.com/acme/fastgrid">' in section
    assert '<meta name="twitter:card" content="summary">' in section
    assert "canonical" not in section
    assert "og:image" not in section


def test_seo_section_resolves_og_image_and_twitter_handle(repo) -> None:
    config = SiteConfig.from_mapping(
        {
            "seo": {
                "title": "Fastgrid Docs",
                "ogImage": "/img/og.png",
                "twitterHandle": "fastgrid",
                "siteUrl": "https://acme.dev/",
            }
        }
    )

    section = build_seo_section(repo, config)

    assert '<meta property="og:title" content="Fastgrid Docs">' in section
    assert '<meta property="og:image" content="https://acme.dev/img/og.png">' in section
    assert '<meta name="twitter:card" content="summary_large_image">' in section
    assert '<meta name="twitter:site" content="@fastgrid">' in section
    assert '<link rel="canonical" href="https://acme.dev/">' in section


def test_absolute_og_image_is_kept(repo) -> None:
    config = SiteConfig.from_mapping(
        {"seo": {"ogImage": "https://cdn.example.com/og.png", "siteUrl": "https://acme.dev"}}
    )

    assert 'content="https://cdn.example.com/og.png"' in build_seo_section(repo, config)


def test_stats_section(repo_with_extras) -> None:
    section = build_stats_section(repo_with_extras.stats, now=NOW)

    assert "- Stars: 12.3K" in section
    assert "- Forks: 678" in section
    assert "- Last Updated: 2 months ago" in section
    assert "- License: MIT License" in section
    assert "- Latest Release: v2.1.0" in section
    assert "- Contributors: 42" in section


# ── Refine ──────────────────────────────────────────────────────────────────


def test_refine_prompt_numbers_improvements_and_truncates_html() -> None:
    evaluation = Evaluation(score=6.5, feedback="Decent", improvements=("Fix nav", "Add FAQ"))
    html = "<!DOCTYPE html>" + "y" * 12_000

    prompt = build_refine_prompt(html, evaluation, "REQUIREMENTS:\n1. x", "fastgrid", "Grids")

    assert "- Score: 6.5/10" in prompt
    assert "1. Fix nav\n2. Add FAQ" in prompt
    assert html[:10_000] in prompt
    assert html[:10_001] not in prompt
