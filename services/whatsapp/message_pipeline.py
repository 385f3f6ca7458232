"""Turn inbound WhatsApp messages into product-grounded replies."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Optional, Set, Tuple

from models.product_record import RetrievedRecord
from models.session_models import InboundMessage
from services.openai.responder import Responder
from services.retrieval.product_retriever import ProductRetriever
from services.whatsapp.conversation_store import ConversationStore
from services.whatsapp.message_parser import extract_text
from services.whatsapp.session_manager import DeliveryError, SessionManager

LOGGER = logging.getLogger(__name__)
# Status stories arrive as messages from this pseudo chat and never get a reply.
STATUS_BROADCAST_ID = "status@broadcast"


@dataclass
class _SenderTurn:
	lock: asyncio.Lock = field(default_factory=asyncio.Lock)
	holders: int = 0


class MessagePipeline:
	"""Extract text, retrieve a product, generate a reply and deliver it.

	Each inbound message runs in its own task. Messages from the same sender
	are serialized in arrival order; different senders run concurrently.
	A failure while handling one message never affects the others.
	"""

	def __init__(
		self,
		session: SessionManager,
		retriever: ProductRetriever,
		responder: Responder,
		conversations: Optional[ConversationStore] = None,
	) -> None:
		self.session = session
		self.retriever = retriever
		self.responder = responder
		self.conversations = conversations or ConversationStore()
		self._turns: Dict[str, _SenderTurn] = {}
		self._tasks: Set[asyncio.Task] = set()

	def attach(self) -> None:
		"""Subscribe to inbound messages from the session manager."""
		self.session.subscribe(self.submit)

	async def submit(self, message: InboundMessage) -> None:
		"""Schedule a message for processing without blocking the transport callback."""
		task = asyncio.create_task(self.handle(message))
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)

	async def drain(self) -> None:
		"""Wait for every message currently in flight."""
		while self._tasks:
			await asyncio.gather(*list(self._tasks), return_exceptions=True)

	async def answer(self, question: str) -> Tuple[str, Optional[RetrievedRecord]]:
		"""Retrieve the best product for a question and generate the reply text."""
		match = await self.retriever.best_match(question)
		reply = await self.responder.generate(question, match)
		return reply, match

	async def handle(self, message: InboundMessage) -> Optional[str]:
		"""Process one inbound message.

		Returns:
			The delivered reply, or None when the message was skipped or delivery failed.
		"""
		if message.is_from_self or message.sender_id == STATUS_BROADCAST_ID:
			return None
		text = extract_text(message.raw_payload)
		if not text:
			LOGGER.debug("Ignoring message without text from %s", message.sender_id)
			return None

		self.conversations.touch(message.sender_id, at=message.received_at)

		async with self._sender_turn(message.sender_id):
			try:
				reply, match = await self.answer(text)
				if match is not None:
					LOGGER.info(
						"Matched product %s (score %.3f) for %s",
						match.record.id,
						match.relevance_score,
						message.sender_id,
					)
				await self.session.send(message.sender_id, reply)
			except DeliveryError as exc:
				LOGGER.warning(f"Reply to {message.sender_id} dropped: {exc}")
				return None
			except Exception:
				LOGGER.exception("Failed to process message from %s", message.sender_id)
				return None
		return reply

	@asynccontextmanager
	async def _sender_turn(self, sender_id: str) -> AsyncIterator[None]:
		turn = self._turns.get(sender_id)
		if turn is None:
			turn = self._turns[sender_id] = _SenderTurn()
		turn.holders += 1
		try:
			async with turn.lock:
				yield
		finally:
			turn.holders -= 1
			if turn.holders == 0:
				self._turns.pop(sender_id, None)
