"""Locate a JSON object embedded in free-form model output."""

from __future__ import annotations

import json
from typing import Any, Iterator


def _object_spans(text: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) of each balanced top-level ``{...}`` span.

    Braces inside JSON strings (including escaped quotes) do not count toward
    the depth.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for idx, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = idx
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield start, idx + 1


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first parseable top-level JSON object in ``text``."""
    if not text:
        return None
    for start, end in _object_spans(text):
        try:
            parsed = json.loads(text[start:end])
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
