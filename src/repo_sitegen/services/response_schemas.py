"""Field-policy tables for each structured stage, and their entity mappers."""

from __future__ import annotations

import math
from typing import Any

from repo_sitegen.domain.entities import (
    Audience,
    ColorPalette,
    DesignColors,
    DesignSystem,
    Evaluation,
    ProjectType,
    RepoInfo,
    RepositoryAnalysis,
    Style,
    Typography,
)
from repo_sitegen.services.response_validator import FieldPolicy, FieldRule, ResponseSchema

DEFAULT_FONT = "Inter, system-ui, sans-serif"
DEFAULT_LAYOUT = "hero-centered"
DEFAULT_DESCRIPTION = "A software project"
DEFAULT_SCORE = 5.0
PALETTE_KEYS = ("primary", "secondary", "accent", "background", "text")


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        raise TypeError("expected a list")
    return [
        str(item).strip()
        for item in value
        if isinstance(item, (str, int, float)) and not isinstance(item, bool) and str(item).strip()
    ]


def _score(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a score")
    score = float(value)
    if math.isnan(score):
        raise ValueError("score is NaN")
    return min(10.0, max(0.0, score))


def _values(enum_type: type) -> tuple[str, ...]:
    return tuple(member.value for member in enum_type)


# ── Analyze ─────────────────────────────────────────────────────────────────


def analysis_schema(repo: RepoInfo) -> ResponseSchema:
    """Every analysis field falls back; defaults come from the repository facts."""
    return ResponseSchema(
        name="repository analysis",
        fields=(
            FieldRule("name", default=repo.name),
            FieldRule("description", default=repo.description or DEFAULT_DESCRIPTION),
            FieldRule(
                "projectType",
                default=ProjectType.OTHER.value,
                choices=_values(ProjectType),
            ),
            FieldRule("primaryLanguage", default=repo.language or "Unknown"),
            FieldRule("audience", default=Audience.DEVELOPERS.value, choices=_values(Audience)),
            FieldRule("style", default=Style.PROFESSIONAL.value, choices=_values(Style)),
            FieldRule("keyFeatures", kind=list, default=[], coerce=_string_list),
        ),
    )


def to_analysis(data: dict[str, Any]) -> RepositoryAnalysis:
    return RepositoryAnalysis(
        name=data["name"],
        description=data["description"],
        project_type=ProjectType(data["projectType"]),
        primary_language=data["primaryLanguage"],
        audience=Audience(data["audience"]),
        style=Style(data["style"]),
        key_features=tuple(data["keyFeatures"]),
    )


# ── Design ──────────────────────────────────────────────────────────────────

DESIGN_SCHEMA = ResponseSchema(
    name="design system",
    fields=(
        FieldRule("colors.light", FieldPolicy.REQUIRED, kind=dict),
        FieldRule("colors.dark", FieldPolicy.REQUIRED, kind=dict),
        FieldRule("typography", FieldPolicy.REQUIRED, kind=dict),
        *(
            FieldRule(f"colors.{mode}.{key}", FieldPolicy.REQUIRED)
            for mode in ("light", "dark")
            for key in PALETTE_KEYS
        ),
        FieldRule("typography.headingFont", default=DEFAULT_FONT),
        FieldRule("typography.bodyFont", default=DEFAULT_FONT),
        FieldRule("layout", default=DEFAULT_LAYOUT),
    ),
)


def to_design(data: dict[str, Any]) -> DesignSystem:
    colors = data["colors"]
    typography = data["typography"]
    return DesignSystem(
        colors=DesignColors(
            light=ColorPalette(**{key: colors["light"][key] for key in PALETTE_KEYS}),
            dark=ColorPalette(**{key: colors["dark"][key] for key in PALETTE_KEYS}),
        ),
        typography=Typography(
            heading_font=typography["headingFont"],
            body_font=typography["bodyFont"],
        ),
        layout=data["layout"],
    )


# ── Evaluate ────────────────────────────────────────────────────────────────

EVALUATION_SCHEMA = ResponseSchema(
    name="evaluation",
    fields=(
        FieldRule("score", kind=float, default=DEFAULT_SCORE, coerce=_score),
        FieldRule("feedback", default="No feedback provided"),
        FieldRule("strengths", kind=list, default=[], coerce=_string_list),
        FieldRule("improvements", kind=list, default=[], coerce=_string_list),
    ),
)


def to_evaluation(data: dict[str, Any]) -> Evaluation:
    return Evaluation(
        score=data["score"],
        feedback=data["feedback"],
        strengths=tuple(data["strengths"]),
        improvements=tuple(data["improvements"]),
    )
