"""Anthropic adapter — implements the AIProvider port."""

from __future__ import annotations

import logging

import httpx
from anthropic import (
    APIConnectionError,
    APIStatusError,
    AsyncAnthropic,
    AuthenticationError,
    RateLimitError,
)

from repo_sitegen.domain.entities import GenerateTextResult, TaskType, TokenUsage
from repo_sitegen.domain.exceptions import LlmError, TransientProviderError
from repo_sitegen.domain.ports.ai_provider import resolve_temperature

logger = logging.getLogger(__name__)

_TRANSIENT_STATUS = frozenset({408, 409, 429})


class AnthropicAdapter:
    """Concrete ``AIProvider`` backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5",
        *,
        http_client: httpx.AsyncClient | None = None,
        max_output_tokens: int = 16_000,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self._client = client or AsyncAnthropic(
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
        kwargs: dict[str, object] = {
            "model": self._model,
            "max_tokens": max_output_tokens or self._max_output_tokens,
            "temperature": resolve_temperature(temperature, task_type),
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._client.messages.create(**kwargs)  # type: ignore[arg-type]
        except AuthenticationError as exc:
            raise LlmError(
                "Invalid Anthropic API key. "
                "Set a valid key in the ANTHROPIC_API_KEY environment variable."
            ) from exc

        except RateLimitError as exc:
            logger.warning("Anthropic RateLimitError: %s", exc)
            raise TransientProviderError(f"[anthropic] rate limited: {exc}") from exc

        except APIConnectionError as exc:
            raise TransientProviderError(f"[anthropic] connection failed: {exc}") from exc

        except APIStatusError as exc:
            if exc.status_code >= 500 or exc.status_code in _TRANSIENT_STATUS:
                raise TransientProviderError(
                    f"[anthropic] server error {exc.status_code}: {exc}"
                ) from exc
            raise LlmError(f"[anthropic] AI generation failed: {exc}") from exc

        except Exception as exc:
            raise LlmError(f"[anthropic] AI generation failed: {exc}") from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if response.stop_reason == "max_tokens":
            logger.warning("Anthropic output truncated (max_tokens reached)")

        usage = None
        if response.usage:
            usage = TokenUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )
        return GenerateTextResult(text=text, usage=usage)
