"""Response validator — turns untrusted provider text into usable values.

Two entry points:

* :func:`parse_structured` reduces a free-form answer to JSON and applies a
  per-field policy table (:class:`ResponseSchema`).  Fields declared
  ``FALLBACK`` are coerced to their default with a recorded warning; fields
  declared ``REQUIRED`` abort with :class:`StructuralValidationError`.
* :func:`parse_rendered_artifact` validates a rendered HTML page by length
  and structure, repairing truncated documents instead of failing.

The decode ladder is ordered; each step runs only if the previous one left
the text unparsed: strip fences → strict parse → outermost bracket slice →
structural repair → strict parse.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from repo_sitegen.domain.entities import ValidationWarning, WarningKind
from repo_sitegen.domain.exceptions import (
    ArtifactQualityError,
    MalformedResponseError,
    StructuralValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_ARTIFACT_LENGTH = 100
TAILWIND_CDN_TAG = '<script src="https://cdn.tailwindcss.com"></script>'

_OPENING_FENCE_RE = re.compile(r"\A```[\w+-]*[ \t]*(?:\r?\n)?")
_CLOSING_FENCE = "```"
_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_HEX4_RE = re.compile(r"[0-9a-fA-F]{4}")

_SIMPLE_ESCAPES = frozenset('"\\/bfnrt')
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b", "\f": "\\f"}
_KEY_STOP = frozenset(":,{}[]\"'\n")
_VALUE_STOP = frozenset(",{}[]\n")
_BARE_LITERALS = {
    "true": "true",
    "false": "false",
    "null": "null",
    "True": "true",
    "False": "false",
    "None": "null",
    "undefined": "null",
}


# ── Schema ──────────────────────────────────────────────────────────────────


class FieldPolicy(str, Enum):
    """What happens when a declared field is missing or invalid."""

    REQUIRED = "required"
    FALLBACK = "fallback"


class RootKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"


@dataclass(frozen=True, slots=True)
class FieldRule:
    """Validation rule for one (dotted) field path.

    *coerce* runs before the type check and may raise ``TypeError`` or
    ``ValueError`` to mark the value invalid.  *choices* are matched
    case-insensitively and normalised to their canonical spelling.
    """

    path: str
    policy: FieldPolicy = FieldPolicy.FALLBACK
    kind: type | tuple[type, ...] | None = str
    default: Any = None
    choices: tuple[str, ...] | None = None
    coerce: Callable[[Any], Any] | None = None

    def check(self, value: Any) -> tuple[bool, Any]:
        """Return ``(valid, normalised_value)``."""
        if value is None:
            return False, None
        if self.coerce is not None:
            try:
                value = self.coerce(value)
            except (TypeError, ValueError):
                return False, value
        if self.kind is not None:
            if isinstance(value, bool) and not _accepts_bool(self.kind):
                return False, value
            if not isinstance(value, self.kind):
                return False, value
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return False, value
            if self.choices is not None:
                canonical = {choice.lower(): choice for choice in self.choices}
                match = canonical.get(value.lower())
                if match is None:
                    return False, value
                value = match
        return True, value


@dataclass(frozen=True, slots=True)
class ResponseSchema:
    """Declares the expected root and the per-field policy table."""

    name: str
    fields: tuple[FieldRule, ...] = ()
    root: RootKind = RootKind.OBJECT


@dataclass(frozen=True, slots=True)
class ParsedResponse:
    """Decoded and policy-checked structured response."""

    value: Any
    warnings: list[ValidationWarning] = field(default_factory=list)
    repaired: bool = False


@dataclass(frozen=True, slots=True)
class RenderedArtifact:
    """A validated rendered artifact (HTML page)."""

    text: str
    warnings: list[ValidationWarning] = field(default_factory=list)


# ── Public API ──────────────────────────────────────────────────────────────


def strip_code_fences(text: str | None) -> str:
    """Remove a leading fence line (```json, ```html, bare ```) and a trailing fence.

    Backticks inside the payload are left alone; an unterminated fence only
    loses its opening line.
    """
    if not text:
        return ""
    cleaned = text.strip()
    if cleaned.startswith(_CLOSING_FENCE):
        cleaned = _OPENING_FENCE_RE.sub("", cleaned, count=1)
    if cleaned.endswith(_CLOSING_FENCE):
        cleaned = cleaned[: -len(_CLOSING_FENCE)]
    return cleaned.strip()


def extract_bracketed(text: str, root: RootKind = RootKind.OBJECT) -> str | None:
    """Slice *text* from the first opening to the last closing bracket."""
    opening, closing = ("{", "}") if root is RootKind.OBJECT else ("[", "]")
    start = text.find(opening)
    end = text.rfind(closing)
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def repair_json(text: str) -> str:
    """Best-effort structural repair of almost-JSON produced by an LLM.

    Quotes bare keys and bare-word values, converts single-quoted strings,
    escapes control characters, stray backslashes and unescaped inner quotes,
    drops comments and trailing commas, and closes containers left open by
    a truncated response.
    """
    out: list[str] = []
    stack: list[str] = []
    expect_key = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in "\"'":
            literal, i = _read_string(text, i)
            out.append(literal)
            continue
        if ch == "/" and text.startswith(("//", "/*"), i):
            i = _skip_comment(text, i)
            continue
        if ch in "{[":
            stack.append(ch)
            expect_key = ch == "{"
        elif ch in "}]":
            _drop_trailing_comma(out)
            if stack:
                stack.pop()
            expect_key = False
        elif ch == ",":
            expect_key = bool(stack) and stack[-1] == "{"
        elif ch == ":":
            expect_key = False
        elif not ch.isspace():
            token, i = _read_bare_token(text, i, expect_key)
            out.append(token)
            continue
        out.append(ch)
        i += 1

    if stack:
        _drop_trailing_comma(out)
        out.extend("}" if opener == "{" else "]" for opener in reversed(stack))
    return "".join(out)


def parse_structured(raw_text: str | None, schema: ResponseSchema) -> ParsedResponse:
    """Decode *raw_text* to JSON and enforce *schema*'s field policies.

    Raises
    ------
    MalformedResponseError
        The text could not be decoded even after repair.  The cleaned text
        is attached as ``cleaned_text``.
    StructuralValidationError
        A ``REQUIRED`` field is missing or has the wrong shape.
    """
    cleaned = strip_code_fences(raw_text)
    if not cleaned:
        raise MalformedResponseError("AI returned an empty response", cleaned_text="")

    data, repaired = _decode(cleaned, schema)
    if repaired:
        logger.info("%s: response required structural repair", schema.name)

    if schema.root is RootKind.ARRAY:
        return ParsedResponse(value=data, repaired=repaired)

    value, warnings = _apply_rules(data, schema)
    return ParsedResponse(value=value, warnings=warnings, repaired=repaired)


def parse_rendered_artifact(
    raw_text: str | None,
    min_length: int = DEFAULT_MIN_ARTIFACT_LENGTH,
    *,
    html: bool = True,
) -> RenderedArtifact:
    """Validate a rendered artifact by length and (for HTML) root structure.

    Raises :class:`ArtifactQualityError` when the cleaned text is empty or
    shorter than *min_length*.  Missing closing tags are appended with a
    warning rather than failing.
    """
    text = strip_code_fences(raw_text)
    if html:
        text = _slice_from_document_start(text)

    if len(text) < min_length:
        raise ArtifactQualityError(
            "AI returned empty or invalid response. "
            f"Response length: {len(text)} characters."
        )
    if not html:
        return RenderedArtifact(text=text)

    warnings: list[ValidationWarning] = []
    lowered = text.lower()
    if "<!doctype html" not in lowered and "<html" not in lowered:
        warnings.append(
            _warn(
                WarningKind.ARTIFACT_MALFORMED,
                "Generated HTML may be malformed: missing DOCTYPE or html tag. "
                f"Response preview: {text[:100]}...",
            )
        )

    text, appended = close_root_tags(text)
    if appended:
        warnings.append(
            _warn(
                WarningKind.ARTIFACT_REPAIRED,
                "Generated HTML was incomplete, adding missing closing tags: "
                + ", ".join(appended),
            )
        )
    return RenderedArtifact(text=text, warnings=warnings)


def close_root_tags(html: str) -> tuple[str, list[str]]:
    """Drop a dangling partial tag and append missing ``</body>``/``</html>``."""
    appended: list[str] = []
    last_open = html.rfind("<")
    if last_open > html.rfind(">"):
        html = html[:last_open].rstrip()
        appended.append("(truncated tag removed)")

    lowered = html.lower()
    closers: list[str] = []
    if "<body" in lowered and "</body>" not in lowered:
        closers.append("</body>")
    if "</html>" not in lowered:
        closers.append("</html>")
    if closers:
        html = html + "\n" + "\n".join(closers)
    return html, appended + closers


def inject_tailwind_cdn(html: str) -> tuple[str, list[ValidationWarning]]:
    """Ensure the page loads Tailwind from the CDN.

    The script tag is inserted before ``</head>``; without a ``</head>`` the
    page is returned unchanged together with a warning.
    """
    if "tailwindcss" in html:
        return html, []
    index = html.lower().find("</head>")
    if index == -1:
        return html, [
            _warn(
                WarningKind.INJECTION_SKIPPED,
                "Generated HTML missing </head> tag, cannot inject Tailwind CDN.",
            )
        ]
    return f"{html[:index]}  {TAILWIND_CDN_TAG}\n  {html[index:]}", []


# ── Decoding ────────────────────────────────────────────────────────────────


def _decode(cleaned: str, schema: ResponseSchema) -> tuple[Any, bool]:
    """Walk the decode ladder; return ``(data, repaired)``."""
    expected = dict if schema.root is RootKind.OBJECT else list
    last_error = "no JSON value found"

    for step, candidate in enumerate(_candidates(cleaned, schema.root)):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as exc:
            last_error = str(exc)
            continue
        if not isinstance(data, expected):
            last_error = f"expected a JSON {schema.root.value}, got {type(data).__name__}"
            continue
        return data, step == 2

    logger.warning(
        "%s: could not decode response (%s). Cleaned text (first 300 chars): %s",
        schema.name,
        last_error,
        cleaned[:300],
    )
    raise MalformedResponseError(f"AI returned invalid JSON: {last_error}", cleaned_text=cleaned)


def _candidates(cleaned: str, root: RootKind) -> Iterator[str]:
    yield cleaned
    extracted = extract_bracketed(cleaned, root)
    yield extracted if extracted is not None else cleaned
    yield repair_json(extracted if extracted is not None else _from_first_bracket(cleaned, root))


def _from_first_bracket(text: str, root: RootKind) -> str:
    start = text.find("{" if root is RootKind.OBJECT else "[")
    return text[start:] if start != -1 else text


def _read_string(text: str, start: int) -> tuple[str, int]:
    """Read a single- or double-quoted string and return it as valid JSON."""
    quote = text[start]
    buf = ['"']
    j = start + 1
    n = len(text)
    while j < n:
        ch = text[j]
        if ch == "\\":
            nxt = text[j + 1] if j + 1 < n else ""
            if nxt == "u" and _HEX4_RE.fullmatch(text[j + 2 : j + 6]):
                buf.append(text[j : j + 6])
                j += 6
            elif nxt and nxt in _SIMPLE_ESCAPES:
                buf.append(ch + nxt)
                j += 2
            elif nxt == "'":
                buf.append("'")
                j += 2
            else:
                buf.append("\\\\")
                j += 1
            continue
        if ch == quote:
            if _closes_string(text, j + 1):
                buf.append('"')
                return "".join(buf), j + 1
            buf.append('\\"' if quote == '"' else "'")
        elif ch == '"':
            buf.append('\\"')
        elif ch in _CONTROL_ESCAPES:
            buf.append(_CONTROL_ESCAPES[ch])
        elif ord(ch) < 0x20:
            buf.append(f"\\u{ord(ch):04x}")
        else:
            buf.append(ch)
        j += 1
    buf.append('"')
    return "".join(buf), n


def _closes_string(text: str, index: int) -> bool:
    """A quote closes a string only if structure (or the end) follows it."""
    n = len(text)
    while index < n and text[index] in " \t\r\n":
        index += 1
    return index >= n or text[index] in ",:}]"


def _read_bare_token(text: str, start: int, expect_key: bool) -> tuple[str, int]:
    stop = _KEY_STOP if expect_key else _VALUE_STOP
    end = start
    while end < len(text) and text[end] not in stop:
        end += 1
    raw = text[start:end].strip()
    if expect_key:
        return json.dumps(raw, ensure_ascii=False), end
    if raw in _BARE_LITERALS:
        return _BARE_LITERALS[raw], end
    if _NUMBER_RE.fullmatch(raw):
        return raw, end
    return json.dumps(raw, ensure_ascii=False), end


def _skip_comment(text: str, start: int) -> int:
    if text.startswith("//", start):
        end = text.find("\n", start)
        return len(text) if end == -1 else end
    end = text.find("*/", start + 2)
    return len(text) if end == -1 else end + 2


def _drop_trailing_comma(out: list[str]) -> None:
    index = len(out) - 1
    while index >= 0 and out[index].isspace():
        index -= 1
    if index >= 0 and out[index] == ",":
        del out[index]


# ── Field policy ────────────────────────────────────────────────────────────

_MISSING = object()


def _apply_rules(
    data: dict[str, Any], schema: ResponseSchema
) -> tuple[dict[str, Any], list[ValidationWarning]]:
    result = copy.deepcopy(data)
    warnings: list[ValidationWarning] = []
    missing: list[str] = []

    for rule in schema.fields:
        if any(rule.path.startswith(f"{parent}.") for parent in missing):
            continue
        value = _lookup(result, rule.path)
        valid, normalised = rule.check(None if value is _MISSING else value)
        if valid:
            _assign(result, rule.path, normalised)
            continue

        if rule.policy is FieldPolicy.REQUIRED:
            missing.append(rule.path)
            continue

        default = copy.deepcopy(rule.default)
        reason = "is missing" if value is _MISSING or value is None else f"has invalid value {value!r}"
        message = f"{schema.name}: '{rule.path}' {reason}; using default {default!r}"
        logger.warning(message)
        warnings.append(_warn(WarningKind.FIELD_FALLBACK, message, field=rule.path))
        _assign(result, rule.path, default)

    if missing:
        raise StructuralValidationError(
            f"Missing or invalid required fields ({', '.join(missing)})",
            field=missing[0],
        )
    return result, warnings


def _lookup(data: dict[str, Any], path: str) -> Any:
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _assign(data: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def _accepts_bool(kind: type | tuple[type, ...]) -> bool:
    kinds = kind if isinstance(kind, tuple) else (kind,)
    return bool in kinds or object in kinds


def _warn(kind: WarningKind, message: str, field: str | None = None) -> ValidationWarning:
    return ValidationWarning(kind=kind, message=message, field=field)


def _slice_from_document_start(text: str) -> str:
    """Drop prose that precedes ``<!DOCTYPE`` or ``<html``."""
    lowered = text.lower()
    for marker in ("<!doctype", "<html"):
        index = lowered.find(marker)
        if index > 0:
            return text[index:]
        if index == 0:
            return text
    return text
