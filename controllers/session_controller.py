"""Session control helpers for the WhatsApp connection."""

from __future__ import annotations

import re
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from services.whatsapp.session_manager import DeliveryError, SessionManager
from utils.qr_render import QRRenderer

PERSONAL_CHAT_SERVER = "s.whatsapp.net"
NO_QR_MESSAGE = "No QR code available. If the session is already connected there is nothing to scan."


def _session_manager(request: Request) -> SessionManager:
	manager = getattr(request.app.state, "session_manager", None)
	if manager is None:
		raise HTTPException(status_code=500, detail="Session manager not initialized.")
	return manager


def to_chat_id(number: str) -> str:
	"""Turn a phone number (or an existing chat id) into a WhatsApp chat id."""
	value = (number or "").strip()
	if "@" in value:
		return value
	digits = re.sub(r"[\s()+.-]", "", value)
	if not digits.isdigit():
		raise ValueError("Phone number must contain digits only.")
	return f"{digits}@{PERSONAL_CHAT_SERVER}"


async def qr_page(request: Request):
	"""Render the pending pairing code as an image, or explain that none is pending."""
	code = _session_manager(request).get_pairing_code()
	if not code:
		return PlainTextResponse(NO_QR_MESSAGE)
	renderer: QRRenderer = getattr(request.app.state, "qr_renderer", None) or QRRenderer()
	return HTMLResponse(f'<img src="{renderer.render_data_url(code)}" alt="WhatsApp pairing QR code" />')


async def disconnect_session(request: Request) -> PlainTextResponse:
	"""Wipe the stored session and start a fresh pairing flow."""
	await _session_manager(request).reset()
	return PlainTextResponse("Session disconnected and deleted. Open /qr to pair a new device.")


async def session_status(request: Request) -> Dict[str, Any]:
	"""Return the current connection state."""
	snapshot = _session_manager(request).snapshot()
	return {
		"state": snapshot.state.value,
		"has_pairing_code": snapshot.pairing_code is not None,
		"logged_out": snapshot.logged_out,
	}


async def send_message(request: Request, number: str, message: str) -> Dict[str, Any]:
	"""Send an operator-authored message to a phone number."""
	text = (message or "").strip()
	if not text:
		raise HTTPException(status_code=400, detail="Message text is required.")
	try:
		chat_id = to_chat_id(number)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	try:
		await _session_manager(request).send(chat_id, text)
	except DeliveryError as exc:
		status_code = 500 if exc.connected else 400
		raise HTTPException(status_code=status_code, detail=str(exc)) from exc
	return {"sent": True, "chat_id": chat_id}
