"""Recover a JSON record from free-form model output.

Generative models wrap JSON in Markdown fences, surround it with prose, leave
trailing commas, use typographic quotes and put raw newlines inside strings.
:func:`extract` undoes those habits with increasingly aggressive passes and
reports a typed failure instead of raising when nothing works.

The record span is taken from the first ``{`` to the last ``}`` of the text.
Prose that itself contains an earlier ``{`` is swept into the span and the
parse then fails.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any, Iterable, Literal, Union

from pydantic import BaseModel, Field

from launch_forge.core.constants import ExtractionFailureReason


class Parsed(BaseModel):
    kind: Literal["parsed"] = "parsed"
    record: dict[str, Any]

    @property
    def ok(self) -> bool:
        return True


class Failed(BaseModel):
    kind: Literal["failed"] = "failed"
    reason: ExtractionFailureReason
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False


ExtractionResult = Annotated[Union[Parsed, Failed], Field(discriminator="kind")]

_FENCE = re.compile(r"```[A-Za-z0-9_+-]*")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_SMART_DOUBLE_QUOTES = str.maketrans({"“": '"', "”": '"', "„": '"', "‟": '"'})
_ESCAPED_NEWLINE = re.compile(r"\\r\\n|\\n|\\r")
_WHITESPACE_RUN = re.compile(r"\s+")
_LOOSE_COLON = re.compile(r'"\s*:\s*"')
_LOOSE_TRAILING_COMMA_OBJ = re.compile(r",\s*}")
_LOOSE_TRAILING_COMMA_ARR = re.compile(r",\s*]")

_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def strip_fences(text: str) -> str:
    """Remove every triple-backtick marker, with or without a language tag."""
    return _FENCE.sub("", text).strip()


def locate_span(text: str) -> str | None:
    """Return the text between the first ``{`` and the last ``}`` inclusive."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start : end + 1]


def _escape_controls_in_strings(span: str) -> str:
    out: list[str] = []
    in_string = False
    escaped = False
    for ch in span:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            elif ch in _CONTROL_ESCAPES:
                out.append(_CONTROL_ESCAPES[ch])
                continue
        elif ch == '"':
            in_string = True
        out.append(ch)
    return "".join(out)


def normalize_light(span: str) -> str:
    """First repair pass: trailing commas, smart quotes, raw control characters."""
    repaired = _TRAILING_COMMA.sub(r"\1", span)
    repaired = repaired.translate(_SMART_DOUBLE_QUOTES)
    return _escape_controls_in_strings(repaired)


def normalize_aggressive(span: str) -> str:
    """Second repair pass. Lossy: escaped newlines inside strings become spaces."""
    repaired = _ESCAPED_NEWLINE.sub(" ", span)
    repaired = _WHITESPACE_RUN.sub(" ", repaired)
    repaired = _LOOSE_COLON.sub('":"', repaired)
    repaired = _LOOSE_TRAILING_COMMA_OBJ.sub("}", repaired)
    return _LOOSE_TRAILING_COMMA_ARR.sub("]", repaired)


def _loads(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def extract(raw_text: Any) -> Parsed | Failed:
    """Parse the single JSON object embedded in *raw_text*.

    Passes, stopping at the first that parses:

    1. the untouched ``{...}`` span of the raw text;
    2. :func:`normalize_light` applied to the span of the fence-stripped text;
    3. :func:`normalize_aggressive` applied to the result of pass 2.

    Pass 1 keeps fence markers that occur inside string values, so valid
    JSON comes back unchanged. Never raises. Schema checks (required fields)
    are the caller's job; see :func:`check_required`.
    """
    if not isinstance(raw_text, str) or not raw_text:
        return Failed(reason=ExtractionFailureReason.NO_JSON_FOUND, detail="empty response")

    try:
        span = locate_span(raw_text)
        if span is None:
            return Failed(
                reason=ExtractionFailureReason.NO_JSON_FOUND,
                detail=f"no JSON object in: {raw_text[:200]!r}",
            )

        record = _loads(span)
        if record is not None:
            return Parsed(record=record)

        span = locate_span(strip_fences(raw_text)) or span
        light = normalize_light(span)
        record = _loads(light)
        if record is not None:
            return Parsed(record=record)

        record = _loads(normalize_aggressive(light))
        if record is not None:
            return Parsed(record=record)
    except Exception as exc:  # noqa: BLE001
        return Failed(reason=ExtractionFailureReason.SYNTAX_INVALID, detail=repr(exc))

    return Failed(
        reason=ExtractionFailureReason.SYNTAX_INVALID,
        detail=f"unparseable JSON span: {span[:200]!r}",
    )


def missing_fields(record: dict[str, Any], required: Iterable[str]) -> list[str]:
    """Required top-level keys that are absent or ``None`` in *record*."""
    return [name for name in required if record.get(name) is None]


def check_required(result: Parsed | Failed, required: Iterable[str]) -> Parsed | Failed:
    """Downgrade a :class:`Parsed` result lacking *required* keys to ``SchemaInvalid``."""
    if isinstance(result, Failed):
        return result
    missing = missing_fields(result.record, required)
    if missing:
        return Failed(
            reason=ExtractionFailureReason.SCHEMA_INVALID,
            detail=f"missing required fields: {', '.join(missing)}",
        )
    return result
