"""WhatsApp Web transport backed by the `neonize` client.

Every instance owns one neonize client whose credentials live in a SQLite
file inside the session's auth directory. Reconnection is left to
`SessionManager`, so a disconnect tears the client down instead of letting
it retry on its own.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from google.protobuf.json_format import MessageToDict
from neonize.aioze.client import NewAClient
from neonize.aioze.events import ConnectedEv, DisconnectedEv, LoggedOutEv, MessageEv, PairStatusEv
from neonize.utils import build_jid
from neonize.utils.jid import Jid2String

from models.session_models import ConnectionUpdate, InboundMessage
from services.whatsapp.transport import Transport, TransportError, TransportObservers

LOGGER = logging.getLogger(__name__)
CREDENTIALS_FILE = "session.sqlite3"
DEFAULT_SERVER = "s.whatsapp.net"


def parse_chat_id(chat_id: str):
	"""Build a neonize JID from `user@server` (bare numbers default to personal chats)."""
	user, _, server = chat_id.partition("@")
	if not user:
		raise ValueError(f"Invalid chat id: {chat_id!r}")
	return build_jid(user, server or DEFAULT_SERVER)


class NeonizeTransport(Transport):
	"""Adapt neonize events to the transport observer interface."""

	def __init__(self, auth_dir: Path, observers: TransportObservers) -> None:
		super().__init__(auth_dir, observers)
		self.client = NewAClient(str(Path(auth_dir) / CREDENTIALS_FILE))
		self._connect_task: Optional[asyncio.Task] = None
		self._closed = False

		self.client.event.qr(self._on_qr)
		self.client.event(ConnectedEv)(self._on_connected)
		self.client.event(DisconnectedEv)(self._on_disconnected)
		self.client.event(LoggedOutEv)(self._on_logged_out)
		self.client.event(PairStatusEv)(self._on_pair_status)
		self.client.event(MessageEv)(self._on_message)

	async def connect(self) -> None:
		await self.observers.on_connection(ConnectionUpdate(connection="connecting"))
		self._connect_task = asyncio.create_task(self.client.connect())
		self._connect_task.add_done_callback(self._on_connect_done)

	async def send_text(self, chat_id: str, text: str) -> None:
		try:
			await self.client.send_message(parse_chat_id(chat_id), text)
		except ValueError:
			raise
		except Exception as exc:
			raise TransportError(str(exc)) from exc

	async def disconnect(self) -> None:
		self._closed = True
		try:
			await self.client.disconnect()
		finally:
			task = self._connect_task
			if task is not None and not task.done():
				task.cancel()

	def _on_connect_done(self, task: asyncio.Task) -> None:
		if task.cancelled() or self._closed:
			return
		exc = task.exception()
		if exc is not None:
			LOGGER.error(f"neonize connect failed: {exc}")
			asyncio.ensure_future(self._report_close(reason=str(exc)))

	async def _report_close(self, reason: str, logged_out: bool = False) -> None:
		if self._closed:
			return
		self._closed = True
		await self.observers.on_connection(ConnectionUpdate(connection="close", logged_out=logged_out, reason=reason))

	async def _on_qr(self, _client: NewAClient, data_qr: bytes) -> None:
		code = data_qr.decode("utf-8") if isinstance(data_qr, (bytes, bytearray)) else str(data_qr)
		await self.observers.on_connection(ConnectionUpdate(qr=code))

	async def _on_connected(self, _client: NewAClient, _event: ConnectedEv) -> None:
		await self.observers.on_connection(ConnectionUpdate(connection="open"))

	async def _on_pair_status(self, _client: NewAClient, _event: PairStatusEv) -> None:
		await self.observers.on_credentials()

	async def _stop_client(self) -> None:
		# Stop neonize's own reconnect loop; SessionManager opens a fresh transport.
		try:
			await self.client.disconnect()
		except Exception as exc:
			LOGGER.debug(f"Ignoring error while stopping client: {exc}")

	async def _on_disconnected(self, _client: NewAClient, _event: DisconnectedEv) -> None:
		await self._report_close(reason="disconnected")
		await self._stop_client()

	async def _on_logged_out(self, _client: NewAClient, event: LoggedOutEv) -> None:
		await self._report_close(reason=f"logged out ({getattr(event, 'Reason', 'unknown')})", logged_out=True)
		await self._stop_client()

	async def _on_message(self, _client: NewAClient, event: MessageEv) -> None:
		source = event.Info.MessageSource
		payload = MessageToDict(event.Message)
		await self.observers.on_message(
			InboundMessage(
				sender_id=Jid2String(source.Chat),
				raw_payload=payload,
				is_from_self=bool(source.IsFromMe),
			)
		)


def neonize_transport_factory(auth_dir: Path, observers: TransportObservers) -> Transport:
	return NeonizeTransport(auth_dir, observers)
