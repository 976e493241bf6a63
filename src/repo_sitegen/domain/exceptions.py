"""Domain exception hierarchy.

Inner layers raise these; the pipeline wraps stage failures in
:class:`PipelineStageError` and the interface layer translates them to HTTP
responses.
"""

from __future__ import annotations


class SiteGeneratorError(Exception):
    """Base exception for the entire application."""


# ── Configuration ───────────────────────────────────────────────────────────


class ConfigurationError(SiteGeneratorError):
    """The supplied site configuration is invalid."""


# ── LLM provider errors ─────────────────────────────────────────────────────


class LlmError(SiteGeneratorError):
    """Any error originating from the LLM provider."""


class TransientProviderError(LlmError):
    """Network, timeout, rate-limit or 5xx failure that may succeed on retry."""


# ── Response validation errors ──────────────────────────────────────────────


class ResponseValidationError(SiteGeneratorError):
    """The provider answered, but the answer could not be used."""


class MalformedResponseError(ResponseValidationError):
    """The response could not be reduced to valid structured data."""

    def __init__(self, message: str, cleaned_text: str = "") -> None:
        super().__init__(message)
        self.cleaned_text = cleaned_text


class StructuralValidationError(ResponseValidationError):
    """The response parsed, but a structurally required field is missing."""

    def __init__(self, message: str, field: str = "") -> None:
        super().__init__(message)
        self.field = field


class ArtifactQualityError(ResponseValidationError):
    """A rendered artifact (HTML page) is empty or too short."""


# ── Pipeline errors ─────────────────────────────────────────────────────────


class PipelineStageError(SiteGeneratorError):
    """A pipeline stage failed; the message is prefixed with the stage name."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage
