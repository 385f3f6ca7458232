"""Owner of the single WhatsApp session for this process.

The manager creates one transport per connection attempt, surfaces the
pairing code while the device is unlinked and reconnects after transient
closes with a fixed delay. An authoritative logout wipes the credentials
and leaves the session disconnected until `reset()` or `start()` is called.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, List, Optional

from models.session_models import ConnectionState, ConnectionUpdate, InboundMessage, SessionSnapshot
from services.whatsapp.credential_store import CredentialStore
from services.whatsapp.transport import Transport, TransportFactory, TransportObservers

LOGGER = logging.getLogger(__name__)

MessageHandler = Callable[[InboundMessage], Awaitable[None]]


class DeliveryError(RuntimeError):
	"""Raised when a reply cannot be handed to the transport."""

	def __init__(self, message: str, connected: bool = True) -> None:
		super().__init__(message)
		self.connected = connected


class SessionManager:
	"""Manage connection lifecycle, pairing code and outbound delivery."""

	def __init__(
		self,
		transport_factory: TransportFactory,
		credentials: CredentialStore,
		reconnect_delay_s: float = 2.0,
	) -> None:
		self.transport_factory = transport_factory
		self.credentials = credentials
		self.reconnect_delay_s = reconnect_delay_s

		self._lock = asyncio.Lock()
		self._state = ConnectionState.DISCONNECTED
		self._pairing_code: Optional[str] = None
		self._logged_out = False
		self._transport: Optional[Transport] = None
		# Bumped on every new transport; callbacks from older transports are ignored.
		self._generation = 0
		self._reconnect_task: Optional[asyncio.Task] = None
		self._message_handlers: List[MessageHandler] = []

	@property
	def state(self) -> ConnectionState:
		return self._state

	@property
	def logged_out(self) -> bool:
		return self._logged_out

	def subscribe(self, handler: MessageHandler) -> None:
		"""Register a coroutine called for every inbound message."""
		self._message_handlers.append(handler)

	def get_pairing_code(self) -> Optional[str]:
		"""Return the latest pairing code while pairing, else None."""
		if self._state is ConnectionState.PAIRING:
			return self._pairing_code
		return None

	def snapshot(self) -> SessionSnapshot:
		return SessionSnapshot(
			state=self._state,
			pairing_code=self.get_pairing_code(),
			logged_out=self._logged_out,
		)

	async def start(self) -> None:
		"""Open a connection unless one is already active.

		Returns once the attempt has been issued; completion is reported
		through the connection observer.
		"""
		async with self._lock:
			await self._start_locked()

	async def reset(self) -> None:
		"""Wipe credentials, drop the current connection and start pairing again."""
		async with self._lock:
			self._generation += 1
			self._cancel_reconnect()
			await self._close_transport()
			await self.credentials.clear()
			self._pairing_code = None
			self._logged_out = False
			self._state = ConnectionState.DISCONNECTED
			LOGGER.info("Session reset requested; starting a new pairing flow")
			await self._start_locked()

	async def stop(self) -> None:
		"""Close the connection on shutdown without touching credentials."""
		async with self._lock:
			self._generation += 1
			self._cancel_reconnect()
			await self._close_transport()
			self._pairing_code = None
			self._state = ConnectionState.DISCONNECTED

	async def send(self, chat_id: str, text: str) -> None:
		"""Deliver a text message on the live connection.

		Raises:
			DeliveryError: If the session is not connected or the transport rejects the send.
		"""
		transport = self._transport
		if transport is None or self._state is not ConnectionState.CONNECTED:
			raise DeliveryError("WhatsApp session is not connected.", connected=False)
		try:
			await transport.send_text(chat_id, text)
		except Exception as exc:
			raise DeliveryError(f"Failed to send message to {chat_id}: {exc}") from exc

	async def _start_locked(self) -> None:
		if self._transport is not None and self._state is not ConnectionState.DISCONNECTED:
			LOGGER.debug("start() ignored; connection already %s", self._state.value)
			return
		await self._close_transport()

		self._generation += 1
		generation = self._generation
		self._logged_out = False

		auth_dir = await self.credentials.ensure()
		if not await self.credentials.exists():
			LOGGER.info("No stored credentials found; waiting for QR pairing")

		observers = TransportObservers(
			on_credentials=partial(self._on_credentials, generation),
			on_connection=partial(self._on_connection, generation),
			on_message=partial(self._on_message, generation),
		)
		self._transport = self.transport_factory(auth_dir, observers)
		self._state = ConnectionState.PAIRING
		try:
			await self._transport.connect()
		except Exception as exc:
			LOGGER.error(f"Connection attempt failed: {exc}")
			if generation == self._generation:
				self._transport = None
				self._state = ConnectionState.DISCONNECTED
				self._schedule_reconnect(generation)

	async def _close_transport(self) -> None:
		transport, self._transport = self._transport, None
		if transport is None:
			return
		try:
			await transport.disconnect()
		except Exception as exc:
			LOGGER.warning(f"Error while closing transport: {exc}")

	def _schedule_reconnect(self, generation: int) -> None:
		self._cancel_reconnect()
		self._reconnect_task = asyncio.create_task(self._reconnect_later(generation))

	def _cancel_reconnect(self) -> None:
		task, self._reconnect_task = self._reconnect_task, None
		if task is not None and not task.done() and task is not asyncio.current_task():
			task.cancel()

	async def _reconnect_later(self, generation: int) -> None:
		await asyncio.sleep(self.reconnect_delay_s)
		async with self._lock:
			if generation != self._generation or self._logged_out:
				return
			LOGGER.info("Reconnecting to WhatsApp")
			await self._start_locked()

	async def _on_credentials(self, generation: int) -> None:
		if generation == self._generation:
			LOGGER.debug("Transport reported updated credentials")

	async def _on_connection(self, generation: int, update: ConnectionUpdate) -> None:
		if generation != self._generation:
			return

		if update.qr:
			self._pairing_code = update.qr
			self._state = ConnectionState.PAIRING
			LOGGER.info("New QR code generated; fetch it from /qr")

		if update.connection == "open":
			self._pairing_code = None
			self._state = ConnectionState.CONNECTED
			LOGGER.info("Connected to WhatsApp")
		elif update.connection == "close":
			self._transport = None
			self._pairing_code = None
			self._state = ConnectionState.DISCONNECTED
			if update.logged_out:
				self._logged_out = True
				LOGGER.warning("WhatsApp session logged out; call /disconnect to pair again")
				await self.credentials.clear()
			else:
				LOGGER.info(
					"Connection closed (%s); reconnecting in %.1fs",
					update.reason or "unknown reason",
					self.reconnect_delay_s,
				)
				self._schedule_reconnect(generation)

	async def _on_message(self, generation: int, message: InboundMessage) -> None:
		if generation != self._generation:
			return
		for handler in self._message_handlers:
			await handler(message)
