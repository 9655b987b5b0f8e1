"""Record extraction pipeline for free-text AI responses."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from json import JSONDecodeError

from pydantic import BaseModel, Field

from dailycipher.models import RawRecord

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_+-]*\s*\n?(?P<body>.*?)```", re.DOTALL)
_FENCE_MARKER = re.compile(r"```[A-Za-z0-9_+-]*")
_TRAILING_COMMA = re.compile(r",\s*(?=[}\]])")

# Keys a model sometimes wraps the record in.
_WRAPPER_KEYS = ("puzzle", "puzzleSequence", "data")


class ExtractionResult(BaseModel):
    """Outcome of running the ordered extraction strategies over one response."""

    success: bool
    record: RawRecord | None = None
    strategy: str | None = None
    tried: list[str] = Field(default_factory=list)
    error: str | None = None


def _load_object(text: str) -> RawRecord | None:
    try:
        parsed = json.loads(text)
    except (JSONDecodeError, ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    if len(parsed) == 1:
        key = next(iter(parsed))
        if key in _WRAPPER_KEYS and isinstance(parsed[key], dict):
            return parsed[key]
    return parsed


def _brace_span(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return text[start : end + 1]


def parse_direct(text: str) -> RawRecord | None:
    return _load_object(text.strip())


def parse_fenced(text: str) -> RawRecord | None:
    match = _FENCE_PATTERN.search(text)
    if match is None:
        return None
    return _load_object(match.group("body").strip())


def parse_braces(text: str) -> RawRecord | None:
    span = _brace_span(text)
    if span is None:
        return None
    return _load_object(span)


def parse_repaired(text: str) -> RawRecord | None:
    """Strip stray fences, cut to the outer braces and drop trailing commas."""
    span = _brace_span(_FENCE_MARKER.sub("", text))
    if span is None:
        return None
    return _load_object(_TRAILING_COMMA.sub("", span))


# Cheapest and strictest first.
STRATEGIES: tuple[tuple[str, Callable[[str], RawRecord | None]], ...] = (
    ("direct", parse_direct),
    ("fenced", parse_fenced),
    ("braces", parse_braces),
    ("repaired", parse_repaired),
)


def extract_record(response_text: str) -> ExtractionResult:
    """Return the first record any strategy can parse out of *response_text*."""
    if not response_text or not response_text.strip():
        return ExtractionResult(success=False, error="Raw AI response was empty.")

    tried: list[str] = []
    for name, strategy in STRATEGIES:
        tried.append(name)
        record = strategy(response_text)
        if record is not None:
            if name != "direct":
                logger.debug("Extracted record using '%s' strategy.", name)
            return ExtractionResult(success=True, record=record, strategy=name, tried=tried)

    return ExtractionResult(
        success=False,
        tried=tried,
        error=f"Could not parse a JSON object from the response (tried: {', '.join(tried)}).",
    )
