"""Google Gemini adapter — implements the AIProvider port."""

from __future__ import annotations

import logging

import httpx
from google import genai
from google.genai import errors, types

from repo_sitegen.domain.entities import GenerateTextResult, TaskType, TokenUsage
from repo_sitegen.domain.exceptions import LlmError, TransientProviderError
from repo_sitegen.domain.ports.ai_provider import resolve_temperature

logger = logging.getLogger(__name__)

_TRANSIENT_STATUS = frozenset({408, 429})


class GoogleAdapter:
    """Concrete ``AIProvider`` backed by the Gemini API (``google-genai``)."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        *,
        max_output_tokens: int = 16_000,
        client: genai.Client | None = None,
    ) -> None:
        self._client = client or genai.Client(api_key=api_key)
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
        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=resolve_temperature(temperature, task_type),
            max_output_tokens=max_output_tokens or self._max_output_tokens,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except errors.ServerError as exc:
            raise TransientProviderError(f"[google] server error {exc.code}: {exc}") from exc

        except errors.APIError as exc:
            if exc.code in _TRANSIENT_STATUS:
                logger.warning("Gemini transient error %s: %s", exc.code, exc)
                raise TransientProviderError(f"[google] rate limited: {exc}") from exc
            raise LlmError(f"[google] AI generation failed: {exc}") from exc

        except httpx.TransportError as exc:
            raise TransientProviderError(f"[google] connection failed: {exc}") from exc

        except Exception as exc:
            raise LlmError(f"[google] AI generation failed: {exc}") from exc

        usage = None
        metadata = response.usage_metadata
        if metadata:
            usage = TokenUsage(
                prompt_tokens=metadata.prompt_token_count or 0,
                completion_tokens=metadata.candidates_token_count or 0,
                total_tokens=metadata.total_token_count or 0,
            )
        return GenerateTextResult(text=response.text or "", usage=usage)
