"""
Helpers for pulling JSON payloads out of generative-model output.

Models often wrap JSON in markdown code fences or add a sentence before
or after the object. These helpers strip that wrapping before parsing.
"""

import json
import re
from typing import Any

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace."""
    return _FENCE_PATTERN.sub('', text or '').strip()


def parse_json_payload(text: str, expect: type = dict) -> Any:
    """
    Parse a JSON object or array from model output.

    Args:
        text: Raw model output
        expect: ``dict`` or ``list``; the payload type to look for

    Returns:
        The parsed payload

    Raises:
        ValueError: If no well-formed payload of the expected type is found
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ValueError("Empty model response")

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        # Fall back to the outermost bracketed span
        open_char, close_char = ('{', '}') if expect is dict else ('[', ']')
        start = cleaned.find(open_char)
        end = cleaned.rfind(close_char)
        if start == -1 or end <= start:
            raise ValueError("No JSON payload found in model response")
        try:
            payload = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed JSON in model response: {e}") from e

    if not isinstance(payload, expect):
        raise ValueError(f"Expected a JSON {expect.__name__}, got {type(payload).__name__}")

    return payload
