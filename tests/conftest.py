"""Shared fakes for the WhatsApp assistant tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional, Sequence

import pytest

from models.session_models import ConnectionUpdate, InboundMessage
from services.openai.embedding_service import EmbeddingService
from services.retrieval.product_retriever import ProductRetriever
from services.retrieval.vector_index import InMemoryVectorIndex
from services.whatsapp.credential_store import CredentialStore
from services.whatsapp.session_manager import SessionManager
from services.whatsapp.transport import Transport, TransportError, TransportObservers


class FakeTransport(Transport):
	def __init__(self, auth_dir: Path, observers: TransportObservers, hub: "TransportHub") -> None:
		super().__init__(auth_dir, observers)
		self.hub = hub
		self.sent: List[tuple] = []
		self.disconnected = False

	async def connect(self) -> None:
		self.hub.connects += 1
		if self.hub.fail_connects > 0:
			self.hub.fail_connects -= 1
			raise ConnectionError("network unreachable")
		if self.hub.qr_on_connect:
			await self.emit_qr(self.hub.qr_on_connect)
		if self.hub.auto_open:
			await self.emit_open()

	async def send_text(self, chat_id: str, text: str) -> None:
		if self.hub.reject_sends:
			raise TransportError("rejected by server")
		self.sent.append((chat_id, text))
		self.hub.sent.append((chat_id, text))

	async def disconnect(self) -> None:
		self.disconnected = True

	async def emit_qr(self, code: str) -> None:
		await self.observers.on_connection(ConnectionUpdate(qr=code))

	async def emit_open(self) -> None:
		await self.observers.on_connection(ConnectionUpdate(connection="open"))

	async def emit_close(self, logged_out: bool = False) -> None:
		await self.observers.on_connection(
			ConnectionUpdate(connection="close", logged_out=logged_out, reason="test close")
		)

	async def emit_message(self, message: InboundMessage) -> None:
		await self.observers.on_message(message)


class TransportHub:
	"""Factory that records every transport the session manager creates."""

	def __init__(self, auto_open: bool = False, qr_on_connect: Optional[str] = None) -> None:
		self.auto_open = auto_open
		self.qr_on_connect = qr_on_connect
		self.fail_connects = 0
		self.reject_sends = False
		self.connects = 0
		self.transports: List[FakeTransport] = []
		self.sent: List[tuple] = []

	def factory(self, auth_dir: Path, observers: TransportObservers) -> FakeTransport:
		transport = FakeTransport(auth_dir, observers, self)
		self.transports.append(transport)
		return transport

	@property
	def latest(self) -> FakeTransport:
		return self.transports[-1]


class FakeEmbeddings:
	"""Stand-in for `client.embeddings` returning fixed vectors per text."""

	def __init__(self, vectors: Dict[str, Sequence[float]], default: Sequence[float] = (0.0, 0.0, 1.0)) -> None:
		self.vectors = vectors
		self.default = default
		self.calls: List[str] = []
		self.error: Optional[Exception] = None

	async def create(self, model: str, input: str):
		self.calls.append(input)
		if self.error is not None:
			raise self.error
		vector = self.vectors.get(input, self.default)
		return SimpleNamespace(data=[SimpleNamespace(embedding=list(vector))])


class FakeResponses:
	"""Stand-in for `client.responses` returning canned output text."""

	def __init__(self, text: str = "Here is what I found.") -> None:
		self.text = text
		self.calls: List[dict] = []
		self.error: Optional[Exception] = None
		self.delay: float = 0.0

	async def create(self, **kwargs):
		self.calls.append(kwargs)
		if self.delay:
			await asyncio.sleep(self.delay)
		if self.error is not None:
			raise self.error
		return SimpleNamespace(output_text=self.text, output=[])

	def last_prompt(self) -> str:
		return self.calls[-1]["input"][-1]["content"][0]["text"]


class FakeOpenAI:
	def __init__(self, vectors: Optional[Dict[str, Sequence[float]]] = None, reply: str = "Here is what I found.") -> None:
		self.embeddings = FakeEmbeddings(vectors or {})
		self.responses = FakeResponses(reply)
		self.closed = False

	async def close(self) -> None:
		self.closed = True


async def wait_until(predicate, timeout: float = 1.0) -> None:
	"""Poll `predicate` until it is truthy or fail after `timeout` seconds."""
	loop = asyncio.get_running_loop()
	deadline = loop.time() + timeout
	while not predicate():
		if loop.time() > deadline:
			raise AssertionError("condition not reached before timeout")
		await asyncio.sleep(0.005)


@pytest.fixture
def hub() -> TransportHub:
	return TransportHub()


@pytest.fixture
def credential_store(tmp_path: Path) -> CredentialStore:
	return CredentialStore(tmp_path / "auth")


@pytest.fixture
def session_manager(hub: TransportHub, credential_store: CredentialStore) -> SessionManager:
	return SessionManager(hub.factory, credential_store, reconnect_delay_s=0.01)


@pytest.fixture
def fake_openai() -> FakeOpenAI:
	return FakeOpenAI(
		vectors={
			"Widget X: A sturdy widget": (1.0, 0.0, 0.0),
			"do you have product X?": (1.0, 0.0, 0.0),
			"hello": (0.2, 0.98, 0.0),
		}
	)


@pytest.fixture
def retriever(fake_openai: FakeOpenAI) -> ProductRetriever:
	embeddings = EmbeddingService(fake_openai, model="test-embedding", timeout_s=1.0)
	return ProductRetriever(InMemoryVectorIndex(), embeddings, threshold=0.5, top_k=3)
