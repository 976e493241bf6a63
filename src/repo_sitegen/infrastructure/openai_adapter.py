"""OpenAI adapter — implements the AIProvider port."""

from __future__ import annotations

import logging

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError,
)

from repo_sitegen.domain.entities import GenerateTextResult, TaskType, TokenUsage
from repo_sitegen.domain.exceptions import LlmError, TransientProviderError
from repo_sitegen.domain.ports.ai_provider import resolve_temperature

logger = logging.getLogger(__name__)


class OpenAIAdapter:
    """Concrete ``AIProvider`` backed by the OpenAI chat-completions API.

    SDK-level retries are disabled; transient failures surface as
    :class:`TransientProviderError` so the pipeline's retry policy decides.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1",
        *,
        http_client: httpx.AsyncClient | None = None,
        max_output_tokens: int = 16_000,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(
            api_key=api_key, http_client=http_client, max_retries=0
        )
        self._model = model
        self._max_output_tokens = max_output_tokens

    @property
    def model(self) -> str:
        return self._model

    async def generate_text(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float | None = None,
        task_type: TaskType | None = None,
        max_output_tokens: int | None = None,
    ) -> GenerateTextResult:
        """Send a prompt and return the completion text."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                temperature=resolve_temperature(temperature, task_type),
                max_tokens=max_output_tokens or self._max_output_tokens,
            )
        except AuthenticationError as exc:
            raise LlmError(
                "Invalid OpenAI API key. "
                "Set a valid key in the OPENAI_API_KEY environment variable."
            ) from exc

        except RateLimitError as exc:
            logger.warning("OpenAI RateLimitError: %s", exc)
            raise TransientProviderError(f"[openai] rate limited: {exc}") from exc

        except APIConnectionError as exc:
            raise TransientProviderError(f"[openai] connection failed: {exc}") from exc

        except APIStatusError as exc:
            if exc.status_code >= 500:
                raise TransientProviderError(
                    f"[openai] server error {exc.status_code}: {exc}"
                ) from exc
            raise LlmError(f"[openai] AI generation failed: {exc}") from exc

        except Exception as exc:
            raise LlmError(f"[openai] AI generation failed: {exc}") from exc

        choice = response.choices[0]
        usage = None
        if response.usage:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )
        if choice.finish_reason == "length":
            logger.warning("OpenAI output truncated (max tokens reached)")
        return GenerateTextResult(text=choice.message.content or "", usage=usage)
