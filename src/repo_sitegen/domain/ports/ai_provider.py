"""Port: AI provider — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_sitegen.domain.entities import TASK_TEMPERATURE, GenerateTextResult, TaskType


class AIProvider(Protocol):
    """Abstract contract for interacting with a large-language model.

    When *temperature* is omitted the implementation uses the default for
    *task_type* (see :data:`~repo_sitegen.domain.entities.TASK_TEMPERATURE`),
    falling back to the ``content`` temperature.
    """

    async def generate_text(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float | None = None,
        task_type: TaskType | None = None,
        max_output_tokens: int | None = None,
    ) -> GenerateTextResult:
        """Send a prompt and return the raw completion text."""
        ...


def resolve_temperature(temperature: float | None, task_type: TaskType | None) -> float:
    """Return the explicit temperature, or the task-keyed default."""
    if temperature is not None:
        return temperature
    return TASK_TEMPERATURE[task_type or TaskType.CONTENT]
