"""Extract user text from WhatsApp message payloads."""

from __future__ import annotations

from typing import Any, Dict, Optional

# Lookup order: plain body first, then captions of media messages.
TEXT_PATHS = (
	("conversation",),
	("extendedTextMessage", "text"),
	("imageMessage", "caption"),
	("videoMessage", "caption"),
	("documentMessage", "caption"),
)

WRAPPER_KEYS = ("ephemeralMessage", "viewOnceMessage", "viewOnceMessageV2", "documentWithCaptionMessage")


def _unwrap(payload: Dict[str, Any]) -> Dict[str, Any]:
	"""Strip ephemeral/view-once envelopes that nest the real message."""
	current = payload
	for _ in range(len(WRAPPER_KEYS)):
		for key in WRAPPER_KEYS:
			inner = current.get(key)
			if isinstance(inner, dict) and isinstance(inner.get("message"), dict):
				current = inner["message"]
				break
		else:
			return current
	return current


def _lookup(payload: Dict[str, Any], path) -> Any:
	node: Any = payload
	for key in path:
		if not isinstance(node, dict):
			return None
		node = node.get(key)
	return node


def extract_text(payload: Any) -> Optional[str]:
	"""Return the first non-empty text found in a message payload.

	Args:
		payload: Message content as a dict keyed by WhatsApp message type, or a plain string.

	Returns:
		The stripped text, or None when the message carries no text.
	"""
	if isinstance(payload, str):
		return payload.strip() or None
	if not isinstance(payload, dict):
		return None
	message = _unwrap(payload)
	for path in TEXT_PATHS:
		value = _lookup(message, path)
		if isinstance(value, str) and value.strip():
			return value.strip()
	return None
