"""Self-Refine — bounded evaluate/improve loop for a rendered page.

States::

    Evaluating → (score >= target or iterations >= max) → Done
               → Improving → Validating → Evaluating

The only mutable state is the iteration counter and the current
page/evaluation pair.  Provider or validation failures end the loop early
and never propagate: the last valid page is returned with
``improved=False``.
"""

from __future__ import annotations

import logging

from repo_sitegen.domain.entities import Evaluation, RefinementResult, TaskType
from repo_sitegen.domain.exceptions import LlmError, ResponseValidationError
from repo_sitegen.domain.ports.ai_provider import AIProvider
from repo_sitegen.services.prompts import build_evaluation_prompt, build_refine_prompt
from repo_sitegen.services.response_schemas import EVALUATION_SCHEMA, to_evaluation
from repo_sitegen.services.response_validator import (
    DEFAULT_MIN_ARTIFACT_LENGTH,
    parse_rendered_artifact,
    parse_structured,
)

logger = logging.getLogger(__name__)

DEFAULT_TARGET_SCORE = 8.0
DEFAULT_MAX_ITERATIONS = 3
EVALUATION_TEMPERATURE = 0.0


class SelfRefineLoop:
    """LLM-as-judge refinement of a single page.

    Parameters
    ----------
    ai_provider:
        Port used for both evaluation and improvement calls.
    target_score:
        Stop as soon as an evaluation reaches this score (0–10 scale).
    max_iterations:
        Upper bound on improve cycles.
    min_artifact_length:
        Improved pages shorter than this are rejected.
    """

    def __init__(
        self,
        ai_provider: AIProvider,
        *,
        target_score: float = DEFAULT_TARGET_SCORE,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        min_artifact_length: int = DEFAULT_MIN_ARTIFACT_LENGTH,
    ) -> None:
        self._ai = ai_provider
        self._target = target_score
        self._max_iterations = max_iterations
        self._min_length = min_artifact_length

    async def run(
        self,
        html: str,
        *,
        requirements: str,
        project_name: str,
        project_description: str,
    ) -> RefinementResult:
        logger.info("Starting Self-Refine (target score: %g/10)", self._target)

        try:
            evaluation = await self.evaluate(html, project_name, project_description)
        except (LlmError, ResponseValidationError) as exc:
            logger.warning("Initial evaluation failed, keeping generated page: %s", exc)
            return RefinementResult(
                html=html,
                evaluation=Evaluation(score=0.0, feedback=f"Evaluation failed: {exc}"),
                iterations=0,
                improved=False,
            )
        logger.info("Initial evaluation: %g/10 (%s)", evaluation.score, evaluation.feedback)

        current = html
        iterations = 0
        while evaluation.score < self._target and iterations < self._max_iterations:
            logger.info("Refinement iteration %d/%d", iterations + 1, self._max_iterations)
            for item in evaluation.improvements:
                logger.debug("  improvement requested: %s", item)
            try:
                current = await self.improve(
                    current, evaluation, requirements, project_name, project_description
                )
            except (LlmError, ResponseValidationError) as exc:
                return self._stopped(current, evaluation, iterations, exc)
            iterations += 1

            try:
                evaluation = await self.evaluate(current, project_name, project_description)
            except (LlmError, ResponseValidationError) as exc:
                # The validated page stays; its score is unknown.
                return self._stopped(current, evaluation, iterations, exc)
            logger.info("Iteration %d score: %g/10", iterations, evaluation.score)

        if evaluation.score >= self._target:
            logger.info("Self-Refine complete, final score: %g/10", evaluation.score)
        else:
            logger.info(
                "Self-Refine complete, final score: %g/10 (target was %g)",
                evaluation.score,
                self._target,
            )
        return RefinementResult(
            html=current,
            evaluation=evaluation,
            iterations=iterations,
            improved=iterations > 0 or evaluation.score >= self._target,
        )

    @staticmethod
    def _stopped(
        html: str, evaluation: Evaluation, iterations: int, exc: Exception
    ) -> RefinementResult:
        logger.warning("Refinement stopped after %d iteration(s): %s", iterations, exc)
        return RefinementResult(
            html=html, evaluation=evaluation, iterations=iterations, improved=False
        )

    async def evaluate(
        self, html: str, project_name: str, project_description: str
    ) -> Evaluation:
        """Score *html* with the evaluation prompt at temperature 0.0."""
        result = await self._ai.generate_text(
            build_evaluation_prompt(html, project_name, project_description),
            temperature=EVALUATION_TEMPERATURE,
            task_type=TaskType.EVALUATION,
        )
        parsed = parse_structured(result.text, EVALUATION_SCHEMA)
        return to_evaluation(parsed.value)

    async def improve(
        self,
        html: str,
        evaluation: Evaluation,
        requirements: str,
        project_name: str,
        project_description: str,
    ) -> str:
        """Regenerate *html* addressing the evaluation's improvement list."""
        result = await self._ai.generate_text(
            build_refine_prompt(html, evaluation, requirements, project_name, project_description),
            task_type=TaskType.CONTENT,
        )
        artifact = parse_rendered_artifact(result.text, self._min_length)
        for warning in artifact.warnings:
            logger.warning("Refined page: %s", warning)
        return artifact.text
