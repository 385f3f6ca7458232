"""Transport interface consumed by the session manager.

A transport wraps one WhatsApp Web socket. It is created fresh for every
connection attempt, reports progress through three observers and never
reconnects by itself; reconnection policy belongs to `SessionManager`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from models.session_models import ConnectionUpdate, InboundMessage

CredentialsObserver = Callable[[], Awaitable[None]]
ConnectionObserver = Callable[[ConnectionUpdate], Awaitable[None]]
MessageObserver = Callable[[InboundMessage], Awaitable[None]]


@dataclass
class TransportObservers:
	"""Callbacks a transport invokes while it is alive."""

	on_credentials: CredentialsObserver
	on_connection: ConnectionObserver
	on_message: MessageObserver


class TransportError(RuntimeError):
	"""Raised by a transport when the remote side rejects an operation."""


class Transport:
	"""Base class for a single WhatsApp socket."""

	def __init__(self, auth_dir: Path, observers: TransportObservers) -> None:
		self.auth_dir = auth_dir
		self.observers = observers

	async def connect(self) -> None:
		"""Start connecting; returns once the attempt has been issued."""
		raise NotImplementedError

	async def send_text(self, chat_id: str, text: str) -> None:
		"""Send a plain text message, raising TransportError on rejection."""
		raise NotImplementedError

	async def disconnect(self) -> None:
		"""Close the socket without logging the device out."""
		raise NotImplementedError


TransportFactory = Callable[[Path, TransportObservers], Transport]
