"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ProjectType(str, Enum):
    """What kind of project a repository holds."""

    LIBRARY = "library"
    APPLICATION = "application"
    TOOL = "tool"
    FRAMEWORK = "framework"
    GAME = "game"
    WEBSITE = "website"
    OTHER = "other"


class Audience(str, Enum):
    """Primary audience of the generated site."""

    DEVELOPERS = "developers"
    ENDUSERS = "endusers"
    ENTERPRISE = "enterprise"
    RESEARCHERS = "researchers"


class Style(str, Enum):
    """Visual tone of the generated site."""

    PROFESSIONAL = "professional"
    MINIMAL = "minimal"
    CREATIVE = "creative"
    TECHNICAL = "technical"
    PLAYFUL = "playful"


class TaskType(str, Enum):
    """Kind of provider call; keys the default sampling temperature."""

    ANALYSIS = "analysis"
    DESIGN = "design"
    CONTENT = "content"
    EVALUATION = "evaluation"


TASK_TEMPERATURE: dict[TaskType, float] = {
    TaskType.ANALYSIS: 0.3,
    TaskType.DESIGN: 0.5,
    TaskType.CONTENT: 0.7,
    TaskType.EVALUATION: 0.0,
}


class WarningKind(str, Enum):
    """Category of a non-fatal validation issue."""

    FIELD_FALLBACK = "field_fallback"
    ARTIFACT_REPAIRED = "artifact_repaired"
    ARTIFACT_MALFORMED = "artifact_malformed"
    INJECTION_SKIPPED = "injection_skipped"
    GENERATION_SKIPPED = "generation_skipped"


@dataclass(frozen=True, slots=True)
class ValidationWarning:
    """A non-fatal issue that was resolved while the run continued."""

    kind: WarningKind
    message: str
    field: str | None = None

    def __str__(self) -> str:
        return self.message


# ── Provider results ────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True, slots=True)
class GenerateTextResult:
    """Raw text returned by a provider call."""

    text: str
    usage: TokenUsage | None = None


# ── Repository facts ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RepoStats:
    """Dynamic GitHub statistics for a repository."""

    stars: int
    forks: int
    watchers: int
    open_issues: int
    created_at: str
    updated_at: str
    license: str | None = None
    latest_release: str | None = None
    contributor_count: int | None = None


@dataclass(frozen=True, slots=True)
class Contributor:
    """A single repository contributor."""

    login: str
    avatar_url: str
    profile_url: str
    contributions: int
    type: str = "User"  # "User" or "Bot"


@dataclass(frozen=True, slots=True)
class RepoInfo:
    """Immutable repository facts supplied by an external collector."""

    name: str
    full_name: str = ""
    description: str | None = None
    html_url: str = ""
    language: str | None = None
    topics: tuple[str, ...] = ()
    readme: str | None = None
    stats: RepoStats | None = None
    contributors: tuple[Contributor, ...] = ()


# ── Stage outputs ───────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RepositoryAnalysis:
    """Output of the Analyze stage."""

    name: str
    description: str
    project_type: ProjectType
    primary_language: str
    audience: Audience
    style: Style
    key_features: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ColorPalette:
    """Tailwind color names for one theme mode."""

    primary: str
    secondary: str
    accent: str
    background: str
    text: str


@dataclass(frozen=True, slots=True)
class DesignColors:
    light: ColorPalette
    dark: ColorPalette


@dataclass(frozen=True, slots=True)
class Typography:
    heading_font: str
    body_font: str


@dataclass(frozen=True, slots=True)
class DesignSystem:
    """Output of the Design stage."""

    colors: DesignColors
    typography: Typography
    layout: str = "hero-centered"


@dataclass(frozen=True, slots=True)
class GeneratedPage:
    """A rendered page (or text artifact) addressed by its relative path."""

    path: str
    html: str


@dataclass(frozen=True, slots=True)
class GeneratedAsset:
    path: str
    content: str


@dataclass(frozen=True, slots=True)
class Evaluation:
    """LLM-as-judge verdict on a rendered artifact (0–10 scale)."""

    score: float
    feedback: str
    strengths: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RefinementResult:
    """Outcome of the Self-Refine loop."""

    html: str
    evaluation: Evaluation
    iterations: int
    improved: bool


@dataclass(frozen=True, slots=True)
class GeneratedSite:
    """The final structured output returned to the caller."""

    pages: list[GeneratedPage]
    assets: list[GeneratedAsset] = field(default_factory=list)
    refinement: RefinementResult | None = None
    warnings: list[ValidationWarning] = field(default_factory=list)

    def page(self, path: str) -> GeneratedPage | None:
        for page in self.pages:
            if page.path == path:
                return page
        return None
