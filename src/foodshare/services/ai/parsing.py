"""Extract JSON payloads from loosely formatted model output."""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE = re.compile(r"```(?:json|JSON)?")


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def _balanced_span(text: str, opener: str, closer: str) -> str | None:
    """Return the first balanced ``opener``...``closer`` span, ignoring brackets inside strings."""

    start = text.find(opener)
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find(opener, start + 1)
    return None


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """First balanced JSON object in ``text``, or None if there is none that parses."""

    return _extract(text, "{", "}", dict)


def extract_json_array(text: str | None) -> list[Any] | None:
    """First balanced JSON array in ``text``, or None if there is none that parses."""

    return _extract(text, "[", "]", list)


def _extract(text: str | None, opener: str, closer: str, expected: type) -> Any:
    if not text:
        return None
    cleaned = strip_code_fences(text)
    span = _balanced_span(cleaned, opener, closer)
    if span is None:
        return None
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, expected) else None
