"""Bounded in-memory store of per-sender conversation context."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Optional

from models.session_models import ConversationContext


class ConversationStore:
	"""Track the last activity of each sender, evicting the least recently used."""

	def __init__(self, capacity: int = 1000) -> None:
		if capacity < 1:
			raise ValueError("Conversation capacity must be at least 1.")
		self.capacity = capacity
		self._contexts: "OrderedDict[str, ConversationContext]" = OrderedDict()

	def touch(self, sender_id: str, at: Optional[float] = None) -> ConversationContext:
		"""Create or refresh the context for a sender and mark it most recent."""
		now = time.time() if at is None else at
		context = self._contexts.get(sender_id)
		if context is None:
			context = ConversationContext(sender_id=sender_id, last_active_at=now)
			self._contexts[sender_id] = context
		else:
			context.last_active_at = now
			self._contexts.move_to_end(sender_id)
		context.message_count += 1
		while len(self._contexts) > self.capacity:
			self._contexts.popitem(last=False)
		return context

	def get(self, sender_id: str) -> Optional[ConversationContext]:
		return self._contexts.get(sender_id)

	def __len__(self) -> int:
		return len(self._contexts)

	def __contains__(self, sender_id: object) -> bool:
		return sender_id in self._contexts
