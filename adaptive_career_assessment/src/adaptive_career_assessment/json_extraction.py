"""
JSON extraction from model output.

Models often wrap JSON in a markdown code fence. extract_json strips the
first fence it finds (with or without a language tag) and parses the body
strictly; unwrap_payload applies the collaborator error-envelope convention.
"""

import json
import re
from typing import Any, Dict, Optional

from adaptive_career_assessment.exceptions import CollaboratorError, ResponseParseError

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def strip_code_fence(content: str) -> str:
    """Return the body of the first fenced block, or the whole text if there is none."""
    match = _FENCE_RE.search(content)
    candidate = match.group(1) if match else content
    return candidate.strip()


def extract_json(content: str) -> Any:
    """
    Parse JSON from a possibly markdown-fenced model response.

    Raises:
        ResponseParseError: If nothing parseable remains after fence stripping
    """
    if not isinstance(content, str) or not content.strip():
        raise ResponseParseError("Empty response from AI model")
    try:
        return json.loads(strip_code_fence(content))
    except json.JSONDecodeError as e:
        raise ResponseParseError("Failed to parse AI response as JSON", original_exception=e)


def unwrap_payload(payload: Any, key: Optional[str] = None) -> Dict[str, Any]:
    """
    Apply the `{ "error": ... }` envelope convention.

    Args:
        payload: Parsed JSON
        key: If given, the success payload is nested under this key

    Raises:
        CollaboratorError: If the payload carries an error field
        ResponseParseError: If the payload is not an object or `key` is missing
    """
    if not isinstance(payload, dict):
        raise ResponseParseError("AI response is not a JSON object")
    if payload.get("error"):
        raise CollaboratorError(str(payload["error"]))
    if key is None:
        return payload
    if key not in payload:
        raise ResponseParseError(f"AI response has no '{key}' field")
    return payload[key]
