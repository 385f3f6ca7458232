"""Session domain models for the WhatsApp connection and inbound traffic."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ConnectionState(str, Enum):
	"""Logical state of the single transport session."""

	DISCONNECTED = "disconnected"
	PAIRING = "pairing"
	CONNECTED = "connected"


@dataclass
class ConnectionUpdate:
	"""Connection notification raised by a transport.

	Attributes:
		connection: "connecting", "open" or "close" when the socket changed state.
		qr: Fresh pairing token, present while the device is not yet linked.
		logged_out: True when a close was caused by an authoritative logout.
		reason: Optional human readable close reason for logs.
	"""

	connection: Optional[str] = None
	qr: Optional[str] = None
	logged_out: bool = False
	reason: Optional[str] = None


@dataclass
class InboundMessage:
	"""One message notification delivered by the transport."""

	sender_id: str
	raw_payload: Any
	is_from_self: bool = False
	received_at: float = field(default_factory=lambda: time.time())


@dataclass
class ConversationContext:
	"""Best-effort, in-memory bookkeeping for a single sender."""

	sender_id: str
	last_active_at: float = field(default_factory=lambda: time.time())
	message_count: int = 0


@dataclass
class SessionSnapshot:
	"""Read-only view of the session returned to the control surface."""

	state: ConnectionState
	pairing_code: Optional[str]
	logged_out: bool
