"""Helpers to extract text from Responses API output."""

from __future__ import annotations

from typing import Any


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_text(response: Any) -> str:
    """Return the concatenated output text of a Responses API result."""
    output_text = _get(response, "output_text")
    if isinstance(output_text, str) and output_text.strip():
        return output_text.strip()
    parts = []
    for item in _get(response, "output", None) or []:
        if _get(item, "type") != "message":
            continue
        for content in _get(item, "content", None) or []:
            if _get(content, "type") == "output_text":
                parts.append(_get(content, "text", "") or "")
    return "".join(parts).strip()
