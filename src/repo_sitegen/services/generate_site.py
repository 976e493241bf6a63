"""Generate-site use case — the main orchestration pipeline.

This is the single entry point for the business logic.  It depends only on
the :class:`AIProvider` port and the pure service modules; the interface
layer injects a concrete provider at runtime.

Stages run strictly in order, each prompt built from the previous stage's
validated output::

    Analyze → Design → Generate content → (Self-Refine) → Assemble

Analysis tolerates bad enum values (fallbacks), design aborts when its
structure is missing, content aborts when the page is empty or too short.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from enum import Enum

from repo_sitegen.domain.entities import (
    DesignSystem,
    GeneratedPage,
    GeneratedSite,
    RefinementResult,
    RepoInfo,
    RepositoryAnalysis,
    TaskType,
    ValidationWarning,
    WarningKind,
)
from repo_sitegen.domain.exceptions import LlmError, PipelineStageError, ResponseValidationError
from repo_sitegen.domain.ports.ai_provider import AIProvider
from repo_sitegen.domain.ports.repo_fetcher import RepoFetcher
from repo_sitegen.domain.value_objects import QualityMode, SiteConfig
from repo_sitegen.services.prompts import (
    README_BUDGET,
    build_analysis_prompt,
    build_content_prompt,
    build_contributors_prompt,
    build_design_prompt,
    build_requirements,
)
from repo_sitegen.services.response_schemas import (
    DESIGN_SCHEMA,
    analysis_schema,
    to_analysis,
    to_design,
)
from repo_sitegen.services.response_validator import (
    DEFAULT_MIN_ARTIFACT_LENGTH,
    inject_tailwind_cdn,
    parse_rendered_artifact,
    parse_structured,
)
from repo_sitegen.services.retry import DEFAULT_BASE_DELAY_MS, DEFAULT_MAX_ATTEMPTS, with_retry
from repo_sitegen.services.self_refine import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TARGET_SCORE,
    SelfRefineLoop,
)
from repo_sitegen.services.site_assembly import assemble_site

logger = logging.getLogger(__name__)

INDEX_PATH = "index.html"
CONTRIBUTORS_PATH = "contributors.html"


class PipelineStage(str, Enum):
    ANALYSIS = "analysis"
    DESIGN = "design"
    CONTENT = "content"
    CONTRIBUTORS = "contributors"


_STAGE_PREFIX: dict[PipelineStage, str] = {
    PipelineStage.ANALYSIS: "Repository analysis failed",
    PipelineStage.DESIGN: "Design system generation failed",
    PipelineStage.CONTENT: "Index page generation failed",
    PipelineStage.CONTRIBUTORS: "Contributors page generation failed",
}


def _stage_error(stage: PipelineStage, exc: Exception) -> PipelineStageError:
    return PipelineStageError(stage.value, f"{_STAGE_PREFIX[stage]}: {exc}")


# ── Use case ────────────────────────────────────────────────────────────────


class GenerateSiteUseCase:
    """Orchestrates the full repository → site pipeline.

    Parameters
    ----------
    ai_provider:
        Adapter that can send prompts to an LLM.
    readme_budget:
        README characters included in the analysis prompt.
    min_html_length:
        Rendered pages shorter than this abort the run.
    retry_attempts, retry_base_delay_ms:
        Retry policy for the analysis and design calls.
    refine_target_score, refine_max_iterations:
        Self-Refine settings, used only in ``high`` quality mode.
    sleep:
        Backoff sleeper, replaceable in tests.
    """

    def __init__(
        self,
        ai_provider: AIProvider,
        *,
        readme_budget: int = README_BUDGET,
        min_html_length: int = DEFAULT_MIN_ARTIFACT_LENGTH,
        retry_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        refine_target_score: float = DEFAULT_TARGET_SCORE,
        refine_max_iterations: int = DEFAULT_MAX_ITERATIONS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._ai = ai_provider
        self._readme_budget = readme_budget
        self._min_length = min_html_length
        self._retry_attempts = retry_attempts
        self._retry_delay_ms = retry_base_delay_ms
        self._sleep = sleep
        self._refiner = SelfRefineLoop(
            ai_provider,
            target_score=refine_target_score,
            max_iterations=refine_max_iterations,
            min_artifact_length=min_html_length,
        )

    # ── Public entry points ─────────────────────────────────────────────

    async def execute_for(
        self, fetcher: RepoFetcher, full_name: str, config: SiteConfig
    ) -> GeneratedSite:
        """Collect repository facts through *fetcher*, then run :meth:`execute`."""
        repo = await fetcher.fetch_repo_info(full_name)
        return await self.execute(repo, config)

    async def execute(self, repo: RepoInfo, config: SiteConfig) -> GeneratedSite:
        """Run the full pipeline and return the generated site.

        Raises :class:`PipelineStageError` when a hard stage fails.
        """
        logger.info("Starting site generation for %s", repo.full_name or repo.name)
        warnings: list[ValidationWarning] = []

        # 1. Analyze
        analysis = await self.analyze_repository(repo, warnings)

        # 2. Design
        design = await self.generate_design_system(analysis, warnings)

        # 3. Content
        requirements = build_requirements(repo, analysis, design, config)
        index_html = await self.generate_index_page(requirements, config, warnings)

        # 4. Self-Refine (high quality only)
        refinement: RefinementResult | None = None
        if config.ai.quality is QualityMode.HIGH:
            logger.info("High quality mode: applying Self-Refine")
            refinement = await self._refiner.run(
                index_html,
                requirements=requirements,
                project_name=analysis.name,
                project_description=analysis.description,
            )
            if refinement.html != index_html:
                index_html = self._finalize(refinement.html, warnings)
                refinement = replace(refinement, html=index_html)
            logger.info(
                "Self-Refine: %d iteration(s), final score %g/10",
                refinement.iterations,
                refinement.evaluation.score,
            )

        pages = [GeneratedPage(path=INDEX_PATH, html=index_html)]

        # 5. Contributors page (soft-fail)
        if config.contributors.enabled:
            contributors_page = await self.generate_contributors_page(
                repo, design, config, warnings
            )
            if contributors_page is not None:
                pages.append(contributors_page)

        # 6. Sitemap / robots
        pages, assembly_warnings = assemble_site(pages, config)
        warnings.extend(assembly_warnings)

        logger.info("Site generation complete (%d page(s), %d warning(s))", len(pages), len(warnings))
        return GeneratedSite(pages=pages, refinement=refinement, warnings=warnings)

    # ── Stages ──────────────────────────────────────────────────────────

    async def analyze_repository(
        self, repo: RepoInfo, warnings: list[ValidationWarning]
    ) -> RepositoryAnalysis:
        """Analyze stage: classify the repository; unknown enum values fall back."""
        logger.info("Analyzing repository")
        prompt = build_analysis_prompt(repo, self._readme_budget)
        try:
            text = await self._call_with_retry(prompt, TaskType.ANALYSIS)
            parsed = parse_structured(text, analysis_schema(repo))
        except (LlmError, ResponseValidationError) as exc:
            raise _stage_error(PipelineStage.ANALYSIS, exc) from exc

        warnings.extend(parsed.warnings)
        return to_analysis(parsed.value)

    async def generate_design_system(
        self, analysis: RepositoryAnalysis, warnings: list[ValidationWarning]
    ) -> DesignSystem:
        """Design stage: both palettes and typography are structurally required."""
        logger.info("Generating design system")
        prompt = build_design_prompt(analysis)
        try:
            text = await self._call_with_retry(prompt, TaskType.DESIGN)
            parsed = parse_structured(text, DESIGN_SCHEMA)
        except (LlmError, ResponseValidationError) as exc:
            raise _stage_error(PipelineStage.DESIGN, exc) from exc

        warnings.extend(parsed.warnings)
        return to_design(parsed.value)

    async def generate_index_page(
        self, requirements: str, config: SiteConfig, warnings: list[ValidationWarning]
    ) -> str:
        """Content stage: render the landing page.  Not retried."""
        logger.info("Generating index page")
        prompt = build_content_prompt(requirements, config.site_instructions)
        try:
            result = await self._ai.generate_text(prompt, task_type=TaskType.CONTENT)
            artifact = parse_rendered_artifact(result.text, self._min_length)
        except (LlmError, ResponseValidationError) as exc:
            raise _stage_error(PipelineStage.CONTENT, exc) from exc

        warnings.extend(artifact.warnings)
        for warning in artifact.warnings:
            logger.warning(warning.message)
        return self._finalize(artifact.text, warnings)

    async def generate_contributors_page(
        self,
        repo: RepoInfo,
        design: DesignSystem,
        config: SiteConfig,
        warnings: list[ValidationWarning],
    ) -> GeneratedPage | None:
        """Optional contributors page; failures are recorded, never raised."""
        if not repo.contributors:
            logger.info("Contributors page skipped: no contributors data available")
            return None

        contributors = list(repo.contributors[: config.contributors.max_contributors])
        logger.info("Generating contributors page (%d contributors)", len(contributors))
        prompt = build_contributors_prompt(repo, contributors, design, config)
        try:
            result = await self._ai.generate_text(prompt, task_type=TaskType.CONTENT)
            artifact = parse_rendered_artifact(result.text, self._min_length)
        except (LlmError, ResponseValidationError) as exc:
            error = _stage_error(PipelineStage.CONTRIBUTORS, exc)
            message = f"{error}. Site will be generated without contributors page."
            logger.warning(message)
            warnings.append(
                ValidationWarning(
                    kind=WarningKind.GENERATION_SKIPPED,
                    message=message,
                    field=CONTRIBUTORS_PATH,
                )
            )
            return None

        warnings.extend(artifact.warnings)
        return GeneratedPage(path=CONTRIBUTORS_PATH, html=self._finalize(artifact.text, warnings))

    # ── Helpers ─────────────────────────────────────────────────────────

    async def _call_with_retry(self, prompt: str, task_type: TaskType) -> str:
        result = await with_retry(
            lambda: self._ai.generate_text(prompt, task_type=task_type),
            max_attempts=self._retry_attempts,
            base_delay_ms=self._retry_delay_ms,
            sleep=self._sleep,
        )
        return result.text

    @staticmethod
    def _finalize(html: str, warnings: list[ValidationWarning]) -> str:
        html, injection_warnings = inject_tailwind_cdn(html)
        for warning in injection_warnings:
            logger.warning(warning.message)
        warnings.extend(injection_warnings)
        return html
