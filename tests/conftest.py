from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from repo_sitegen.domain.entities import (
    Contributor,
    GenerateTextResult,
    RepoInfo,
    RepoStats,
    TaskType,
)
from repo_sitegen.domain.ports.ai_provider import resolve_temperature

ANALYSIS_JSON = {
    "name": "fastgrid",
    "description": "A fast grid layout library.",
    "projectType": "library",
    "primaryLanguage": "TypeScript",
    "audience": "developers",
    "style": "technical",
    "keyFeatures": ["Zero dependencies", "Virtual scrolling", "Tiny bundle"],
}

DESIGN_JSON = {
    "colors": {
        "light": {
            "primary": "blue-600",
            "secondary": "indigo-600",
            "accent": "purple-500",
            "background": "white",
            "text": "gray-900",
        },
        "dark": {
            "primary": "blue-400",
            "secondary": "indigo-400",
            "accent": "purple-400",
            "background": "gray-950",
            "text": "gray-50",
        },
    },
    "typography": {"headingFont": "Inter", "bodyFont": "Inter"},
    "layout": "hero-centered",
}

PAGE_HTML = (
    "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n<meta charset=\"utf-8\">\n"
    "<title>fastgrid</title>\n</head>\n<body>\n"
    "<section class=\"hero\"><h1>fastgrid</h1><p>A fast grid layout library.</p></section>\n"
    "<a href=\"https://github.com/acme/fastgrid\">View on GitHub</a>\n"
    "</body>\n</html>"
)


def evaluation_json(score: float, improvements: list[str] | None = None) -> str:
    return json.dumps(
        {
            "score": score,
            "feedback": f"Scored {score}",
            "strengths": ["Clear hero"],
            "improvements": improvements if improvements is not None else ["Better contrast"],
        }
    )


@dataclass
class RecordedCall:
    prompt: str
    system: str | None
    temperature: float
    task_type: TaskType | None


@dataclass
class FakeAIProvider:
    """Scripted ``AIProvider``: returns queued responses in order.

    A queued ``Exception`` instance is raised instead of returned.
    """

    responses: list[str | Exception] = field(default_factory=list)
    calls: list[RecordedCall] = field(default_factory=list)

    async def generate_text(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float | None = None,
        task_type: TaskType | None = None,
        max_output_tokens: int | None = None,
    ) -> GenerateTextResult:
        self.calls.append(
            RecordedCall(
                prompt=prompt,
                system=system,
                temperature=resolve_temperature(temperature, task_type),
                task_type=task_type,
            )
        )
        if not self.responses:
            raise AssertionError("FakeAIProvider ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return GenerateTextResult(text=response)


@pytest.fixture
def fake_provider() -> Callable[..., FakeAIProvider]:
    """Factory: ``fake_provider("resp1", "resp2", ...)``."""

    def _make(*responses: str | Exception) -> FakeAIProvider:
        return FakeAIProvider(responses=list(responses))

    return _make


@pytest.fixture
def standard_responses() -> list[str]:
    """Analyze, design and content responses for a happy-path run."""
    return [json.dumps(ANALYSIS_JSON), json.dumps(DESIGN_JSON), PAGE_HTML]


@pytest.fixture
def repo() -> RepoInfo:
    return RepoInfo(
        name="fastgrid",
        full_name="acme/fastgrid",
        description="A fast grid layout library.",
        html_url="https://github.com/acme/fastgrid",
        language="TypeScript",
        topics=("grid", "layout"),
        readme="# fastgrid\n\n" + "Lorem ipsum dolor sit amet. " * 200,
    )


@pytest.fixture
def repo_with_extras(repo: RepoInfo) -> RepoInfo:
    return RepoInfo(
        name=repo.name,
        full_name=repo.full_name,
        description=repo.description,
        html_url=repo.html_url,
        language=repo.language,
        topics=repo.topics,
        readme=repo.readme,
        stats=RepoStats(
            stars=12_345,
            forks=678,
            watchers=90,
            open_issues=3,
            created_at="2020-01-01T00:00:00Z",
            updated_at="2024-01-01T00:00:00Z",
            license="MIT License",
            latest_release="v2.1.0",
            contributor_count=42,
        ),
        contributors=tuple(
            Contributor(
                login=f"user{i}",
                avatar_url=f"https://avatars.example.com/u/{i}",
                profile_url=f"https://github.com/user{i}",
                contributions=100 - i,
            )
            for i in range(15)
        ),
    )


@pytest.fixture
def no_sleep() -> Callable[[float], object]:
    """Async sleeper that records requested delays instead of waiting."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep


@pytest.fixture
def analysis_payload() -> dict:
    return json.loads(json.dumps(ANALYSIS_JSON))


@pytest.fixture
def design_payload() -> dict:
    return json.loads(json.dumps(DESIGN_JSON))


@pytest.fixture
def page_html() -> str:
    return PAGE_HTML


@pytest.fixture
def make_evaluation() -> Callable[..., str]:
    return evaluation_json
