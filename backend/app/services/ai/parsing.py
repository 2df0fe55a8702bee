"""Lenient parsing of model replies into text and JSON."""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Tuple

DEFAULT_APOLOGY = "Sorry, I couldn't process your request. Please try again."

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def _first_balanced_object(text: str) -> Optional[str]:
    """Return the first ``{...}`` span with balanced braces, ignoring braces in strings."""
    start = text.find("{")
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
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Best-effort extraction of a JSON object from free-form model output.

    Tries, in order: the whole text, a fenced ```json block, then the first
    balanced brace span. Returns None when nothing parses to an object.
    """
    if not text or not text.strip():
        return None

    stripped = text.strip()
    parsed = _loads_object(stripped)
    if parsed is not None:
        return parsed

    for match in _FENCE_RE.finditer(stripped):
        parsed = _loads_object(match.group(1).strip())
        if parsed is not None:
            return parsed

    span = _first_balanced_object(stripped)
    if span is not None:
        return _loads_object(span)
    return None


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub(lambda m: m.group(1), text).strip()


def parse_chat_reply(text: Optional[str]) -> Tuple[str, Optional[Dict[str, Any]]]:
    """Split a chat reply into display text and an optional creation suggestion."""
    if not text or not text.strip():
        return DEFAULT_APOLOGY, None

    payload = extract_json_object(text)
    if payload is not None and isinstance(payload.get("response"), str):
        suggestion = payload.get("suggestions", payload.get("suggestion"))
        if not isinstance(suggestion, dict):
            suggestion = None
        return payload["response"].strip() or DEFAULT_APOLOGY, suggestion

    plain = strip_fences(text)
    return plain or DEFAULT_APOLOGY, None


def parse_insight_reply(text: Optional[str]) -> Dict[str, Any]:
    payload = extract_json_object(text)
    if payload is None:
        return {"raw_response": text or "", "error": "Failed to parse response"}
    return payload
