"""Tests for the provider adapters and the provider registry."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import anthropic
import httpx
import openai
import pytest
from google import genai
from google.genai import errors as genai_errors

from repo_sitegen.domain.entities import TaskType
from repo_sitegen.domain.exceptions import ConfigurationError, LlmError, TransientProviderError
from repo_sitegen.domain.value_objects import ProviderName, QualityMode
from repo_sitegen.infrastructure.anthropic_adapter import AnthropicAdapter
from repo_sitegen.infrastructure.config import Settings
from repo_sitegen.infrastructure.google_adapter import GoogleAdapter
from repo_sitegen.infrastructure.openai_adapter import OpenAIAdapter
from repo_sitegen.infrastructure.provider_registry import ProviderRegistry, create_provider

_REQUEST = httpx.Request("POST", "https://api.example.com/v1")


def _response(status: int) -> httpx.Response:
    return httpx.Response(status, request=_REQUEST)


class _FakeEndpoint:
    """Stands in for ``client.<resource>.create``; records kwargs."""

    def __init__(self, outcome: object) -> None:
        self._outcome = outcome
        self.kwargs: dict[str, object] = {}

    async def __call__(self, **kwargs: object) -> object:
        self.kwargs = kwargs
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


def _openai(outcome: object) -> tuple[OpenAIAdapter, _FakeEndpoint]:
    endpoint = _FakeEndpoint(outcome)
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=endpoint)))
    return OpenAIAdapter("sk-test", "gpt-test", client=client), endpoint  # type: ignore[arg-type]


def _anthropic(outcome: object) -> tuple[AnthropicAdapter, _FakeEndpoint]:
    endpoint = _FakeEndpoint(outcome)
    client = SimpleNamespace(messages=SimpleNamespace(create=endpoint))
    return AnthropicAdapter("sk-ant", "claude-test", client=client), endpoint  # type: ignore[arg-type]


def _google(outcome: object) -> tuple[GoogleAdapter, _FakeEndpoint]:
    endpoint = _FakeEndpoint(outcome)
    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=endpoint)))
    return GoogleAdapter("g-key", "gemini-test", client=client), endpoint  # type: ignore[arg-type]


# ── OpenAI ──────────────────────────────────────────────────────────────────


def test_openai_returns_text_and_usage() -> None:
    completion = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="hello"), finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=5, completion_tokens=2, total_tokens=7),
    )
    adapter, endpoint = _openai(completion)

    result = asyncio.run(
        adapter.generate_text("Hi", system="Be brief", task_type=TaskType.ANALYSIS)
    )

    assert result.text == "hello"
    assert result.usage.total_tokens == 7
    assert endpoint.kwargs["model"] == "gpt-test"
    assert endpoint.kwargs["temperature"] == 0.3
    assert endpoint.kwargs["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Hi"},
    ]


@pytest.mark.parametrize(
    "error, expected",
    [
        (openai.RateLimitError("slow down", response=_response(429), body=None), TransientProviderError),
        (openai.APIConnectionError(request=_REQUEST), TransientProviderError),
        (openai.InternalServerError("boom", response=_response(500), body=None), TransientProviderError),
        (openai.AuthenticationError("bad key", response=_response(401), body=None), LlmError),
        (openai.BadRequestError("bad", response=_response(400), body=None), LlmError),
        (RuntimeError("unexpected SDK failure"), LlmError),
    ],
)
def test_openai_error_translation(error: Exception, expected: type[Exception]) -> None:
    adapter, _ = _openai(error)

    with pytest.raises(expected) as exc_info:
        asyncio.run(adapter.generate_text("Hi"))

    assert type(exc_info.value) is expected
    assert exc_info.value.__cause__ is error


# ── Anthropic ───────────────────────────────────────────────────────────────


def test_anthropic_joins_text_blocks() -> None:
    message = SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="<!DOCTYPE html>"),
            SimpleNamespace(type="thinking", thinking="..."),
            SimpleNamespace(type="text", text="<html></html>"),
        ],
        stop_reason="end_turn",
        usage=SimpleNamespace(input_tokens=10, output_tokens=4),
    )
    adapter, endpoint = _anthropic(message)

    result = asyncio.run(adapter.generate_text("Hi", task_type=TaskType.EVALUATION))

    assert result.text == "<!DOCTYPE html><html></html>"
    assert result.usage.total_tokens == 14
    assert endpoint.kwargs["temperature"] == 0.0
    assert "system" not in endpoint.kwargs


@pytest.mark.parametrize(
    "error, expected",
    [
        (anthropic.RateLimitError("slow", response=_response(429), body=None), TransientProviderError),
        (anthropic.APIStatusError("overloaded", response=_response(529), body=None), TransientProviderError),
        (anthropic.APIConnectionError(request=_REQUEST), TransientProviderError),
        (anthropic.AuthenticationError("bad key", response=_response(401), body=None), LlmError),
        (anthropic.BadRequestError("bad", response=_response(400), body=None), LlmError),
        (ValueError("unexpected SDK failure"), LlmError),
    ],
)
def test_anthropic_error_translation(error: Exception, expected: type[Exception]) -> None:
    adapter, _ = _anthropic(error)

    with pytest.raises(expected) as exc_info:
        asyncio.run(adapter.generate_text("Hi"))

    assert type(exc_info.value) is expected
    assert exc_info.value.__cause__ is error


# ── Google ──────────────────────────────────────────────────────────────────


def _api_error(error_type: type[genai_errors.APIError], code: int) -> genai_errors.APIError:
    return error_type(code, {"error": {"code": code, "message": "failure", "status": "ERR"}})


@pytest.mark.parametrize(
    "error, expected",
    [
        (_api_error(genai_errors.ServerError, 503), TransientProviderError),
        (_api_error(genai_errors.ClientError, 429), TransientProviderError),
        (_api_error(genai_errors.ClientError, 400), LlmError),
        (httpx.ConnectError("refused"), TransientProviderError),
        (RuntimeError("unexpected SDK failure"), LlmError),
    ],
)
def test_google_error_translation(error: Exception, expected: type[Exception]) -> None:
    adapter, _ = _google(error)

    with pytest.raises(expected) as exc_info:
        asyncio.run(adapter.generate_text("Hi"))

    assert type(exc_info.value) is expected
    assert exc_info.value.__cause__ is error


def test_google_returns_text() -> None:
    adapter, endpoint = _google(SimpleNamespace(text="page", usage_metadata=None))

    result = asyncio.run(adapter.generate_text("Hi", task_type=TaskType.CONTENT))

    assert result.text == "page"
    assert result.usage is None
    assert endpoint.kwargs["model"] == "gemini-test"
    assert endpoint.kwargs["config"].temperature == 0.7


# ── Registry ────────────────────────────────────────────────────────────────


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "anthropic_api_key": None,
        "openai_api_key": None,
        "google_api_key": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[arg-type]


def test_missing_api_key_names_the_env_var() -> None:
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        create_provider(ProviderName.OPENAI, QualityMode.STANDARD, _settings())


def test_registry_caches_adapter_per_provider_and_quality() -> None:
    registry = ProviderRegistry(
        _settings(openai_api_key="sk-test", openai_model_high="gpt-high")
    )

    standard = registry.get(ProviderName.OPENAI, QualityMode.STANDARD)
    high = registry.get(ProviderName.OPENAI, QualityMode.HIGH)

    assert registry.get(ProviderName.OPENAI, QualityMode.STANDARD) is standard
    assert isinstance(high, OpenAIAdapter)
    assert high.model == "gpt-high"
    assert standard.model == "gpt-4.1"


def test_registry_builds_google_adapter_with_its_own_client() -> None:
    registry = ProviderRegistry(_settings(google_api_key="g-key"), httpx.AsyncClient())

    adapter = registry.get(ProviderName.GOOGLE, QualityMode.HIGH)

    assert isinstance(adapter, GoogleAdapter)
    assert adapter.model == "gemini-2.5-pro"
    assert isinstance(adapter._client, genai.Client)
