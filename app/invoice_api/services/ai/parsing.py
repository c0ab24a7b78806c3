"""
Best-effort JSON parsing of language model replies.
"""

import json
import logging
import re
from typing import Any

from .exceptions import MalformedModelResponseError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```[a-z0-9_+-]*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"```$")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence, if present."""
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_model_reply(text: str) -> dict[str, Any]:
    """
    Parse a model reply into a JSON object.

    The reply may be wrapped in a code fence or surrounded by prose. The
    cleaned text is parsed directly; if that fails, the first "{" through the
    last "}" is parsed instead.

    Raises:
        MalformedModelResponseError: If no JSON object can be recovered.
    """
    if not text or not text.strip():
        raise MalformedModelResponseError("Empty response from AI model")

    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(cleaned)
        if not match:
            logger.error("No JSON found in model response: %s", cleaned[:500])
            raise MalformedModelResponseError("No JSON found in AI response")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            logger.error("Failed to parse model response: %s", cleaned[:500])
            raise MalformedModelResponseError(f"Invalid JSON in AI response: {e}") from e

    if not isinstance(parsed, dict):
        raise MalformedModelResponseError(
            f"AI response is a JSON {type(parsed).__name__}, expected an object"
        )
    return parsed
