"""Tolerant parsing of generated JSON."""

import json
import re

_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _first_json_block(text: str) -> str:
    """Return the first balanced {...} or [...] block, or the text unchanged."""
    start = -1
    for index, char in enumerate(text):
        if char in "{[":
            start = index
            break
    if start < 0:
        return text

    stack: list[str] = []
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
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]":
            if not stack or stack.pop() != char:
                return text[start:]
            if not stack:
                return text[start : index + 1]
    return text[start:]


def _clean_json_text(raw_output: str) -> str:
    cleaned = _strip_llm_fences(raw_output).translate(_SMART_QUOTES)
    cleaned = _first_json_block(cleaned)
    return _TRAILING_COMMA.sub(r"\1", cleaned)


def parse_llm_json_dict(raw_output: str) -> dict:
    """
    Parse LLM output as a JSON object.

    Handles common LLM response quirks:
    - Markdown code fences (```json ... ```)
    - Smart quotes
    - Prose before or after the JSON (takes the first balanced block)
    - Trailing commas

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup or is not an object
    """
    cleaned = _clean_json_text(raw_output)
    parsed = json.loads(cleaned)
    if not isinstance(parsed, dict):
        raise json.JSONDecodeError("Expected a JSON object", cleaned, 0)
    return parsed
