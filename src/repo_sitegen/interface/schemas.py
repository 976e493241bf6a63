"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from repo_sitegen.domain.entities import (
    Contributor,
    GeneratedSite,
    RepoInfo,
    RepoStats,
)


class _CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatsPayload(_CamelModel):
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0
    created_at: str = ""
    updated_at: str = ""
    license: str | None = None
    latest_release: str | None = None
    contributor_count: int | None = None


class ContributorPayload(_CamelModel):
    login: str
    avatar_url: str = ""
    profile_url: str = ""
    contributions: int = 0
    type: str = "User"


class RepositoryPayload(_CamelModel):
    """Repository facts collected by the caller."""

    name: str
    full_name: str = ""
    description: str | None = None
    html_url: str = ""
    language: str | None = None
    topics: list[str] = Field(default_factory=list)
    readme: str | None = None
    stats: StatsPayload | None = None
    contributors: list[ContributorPayload] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "repository name must not be empty."
            raise ValueError(msg)
        return stripped

    def to_entity(self) -> RepoInfo:
        return RepoInfo(
            name=self.name,
            full_name=self.full_name or self.name,
            description=self.description,
            html_url=self.html_url,
            language=self.language,
            topics=tuple(self.topics),
            readme=self.readme,
            stats=RepoStats(**self.stats.model_dump()) if self.stats else None,
            contributors=tuple(Contributor(**c.model_dump()) for c in self.contributors),
        )


class GenerateRequest(BaseModel):
    """Request body for ``POST /generate``.

    ``config`` is the raw site configuration (same shape as the project's
    config file); it is validated by the domain, not here.
    """

    repository: RepositoryPayload
    config: dict[str, Any] = Field(default_factory=dict)


class PageDTO(BaseModel):
    path: str
    html: str


class AssetDTO(BaseModel):
    path: str
    content: str


class EvaluationDTO(BaseModel):
    score: float
    feedback: str
    strengths: list[str]
    improvements: list[str]


class RefinementDTO(BaseModel):
    evaluation: EvaluationDTO
    iterations: int
    improved: bool


class WarningDTO(BaseModel):
    kind: str
    message: str
    field: str | None = None


class GenerateResponse(BaseModel):
    """Successful response from ``POST /generate``."""

    pages: list[PageDTO]
    assets: list[AssetDTO]
    refinement: RefinementDTO | None = None
    warnings: list[WarningDTO]

    @classmethod
    def from_entity(cls, site: GeneratedSite) -> GenerateResponse:
        refinement = None
        if site.refinement is not None:
            evaluation = site.refinement.evaluation
            refinement = RefinementDTO(
                evaluation=EvaluationDTO(
                    score=evaluation.score,
                    feedback=evaluation.feedback,
                    strengths=list(evaluation.strengths),
                    improvements=list(evaluation.improvements),
                ),
                iterations=site.refinement.iterations,
                improved=site.refinement.improved,
            )
        return cls(
            pages=[PageDTO(path=p.path, html=p.html) for p in site.pages],
            assets=[AssetDTO(path=a.path, content=a.content) for a in site.assets],
            refinement=refinement,
            warnings=[
                WarningDTO(kind=w.kind.value, message=w.message, field=w.field)
                for w in site.warnings
            ],
        )


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
    stage: str | None = None
