"""Recover a JSON object from a generated response."""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


class JsonExtractionError(ValueError):
    """Response text contained no parseable JSON object."""


def extract_json(text: str) -> Any:
    """Parse ``text`` as JSON, tolerating a surrounding code fence.

    A fenced response (```json ... ```) loses its first line and everything
    from the last line that is exactly ``````` onward.

    Raises:
        JsonExtractionError: When neither the raw nor the unfenced text parses.
    """
    stripped = (text or "").strip()
    if not stripped:
        raise JsonExtractionError("Empty response")

    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass

    if stripped.startswith("```"):
        lines = stripped.split("\n")[1:]
        closing = None
        for idx in range(len(lines) - 1, -1, -1):
            if lines[idx].strip() == "```":
                closing = idx
                break
        if closing is not None:
            lines = lines[:closing]
        try:
            return json.loads("\n".join(lines))
        except json.JSONDecodeError as exc:
            logger.debug("Fenced JSON did not parse: %s", exc)
            raise JsonExtractionError(f"Invalid JSON in code fence: {exc.msg}") from exc

    raise JsonExtractionError("Response is not valid JSON")


def extract_json_object(text: str) -> dict[str, Any]:
    """Like :func:`extract_json` but require a top-level object."""
    data = extract_json(text)
    if not isinstance(data, dict):
        raise JsonExtractionError("Expected a JSON object")
    return data
