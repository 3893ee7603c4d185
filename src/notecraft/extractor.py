"""Structured-output extraction from free-form model text."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def extract(
    raw_text: str,
    normalize: Callable[[Mapping[str, Any]], T],
    fallback_factory: Callable[[], Mapping[str, Any]],
    *,
    stage: str = "",
) -> T:
    """Turn raw model text into a typed stage record.

    Tries the whole text as JSON, then the last top-level ``{...}`` block, and
    finally the payload from ``fallback_factory``. Whatever payload wins is
    passed through ``normalize``, which must coerce every field.
    """

    payload = parse_json_object(raw_text)
    if payload is None:
        logger.warning("Malformed %s output, using fallback payload", stage or "model")
        payload = fallback_factory()
    return normalize(payload)


def parse_json_object(raw_text: str | None) -> dict | None:
    """Parse a JSON object out of model text, or return None."""

    text = _strip_code_fence((raw_text or "").strip())
    if not text:
        return None

    parsed = _loads_object(text)
    if parsed is not None:
        return parsed

    block = last_object_block(text)
    if block is None:
        return None
    return _loads_object(block)


def last_object_block(text: str) -> str | None:
    """Return the last balanced top-level ``{...}`` substring, if any."""

    depth = 0
    start = -1
    in_string = False
    escaped = False
    last: str | None = None

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                last = text[start : index + 1]

    return last


def _loads_object(text: str) -> dict | None:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    lines = text.splitlines()[1:]
    if lines and lines[-1].strip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def as_str(value: Any) -> str:
    """Coerce a scalar field to a stripped string; anything else is empty."""

    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def as_str_list(value: Any) -> list[str]:
    """Coerce a list field to non-empty strings; anything else is empty."""

    if not isinstance(value, list):
        return []
    return [text for text in (as_str(item) for item in value) if text]


def as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}
