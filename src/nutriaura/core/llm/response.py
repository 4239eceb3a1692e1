"""Locating the structured block inside LLM output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCED_BLOCK_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)


class MalformedResponseError(Exception):
    """Raised when the model output carries no valid structured block."""


def _balanced_objects(text: str):
    """Yield each top-level ``{...}`` span, honouring JSON string escapes."""
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
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
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : i + 1]


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def extract_structured_block(content: str) -> dict[str, Any]:
    """Return the first JSON object found in ``content``.

    Tried in order: the whole text, each fenced code block, then every
    balanced ``{...}`` span embedded in prose.

    Raises:
        MalformedResponseError: If no candidate parses to a JSON object.
    """
    text = content.strip()
    if not text:
        raise MalformedResponseError("Empty response from analysis service")

    found = _loads_object(text)
    if found is not None:
        return found

    for block in _FENCED_BLOCK_RE.findall(text):
        found = _loads_object(block.strip())
        if found is not None:
            return found

    for span in _balanced_objects(text):
        found = _loads_object(span)
        if found is not None:
            return found

    logger.warning("No structured block in analysis response (%d chars)", len(text))
    raise MalformedResponseError("Analysis response did not contain a valid JSON object")
