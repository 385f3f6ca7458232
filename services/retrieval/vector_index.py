"""Vector index backends for the product catalog.

Both backends expose the same small contract: replace-by-id upsert,
fetch by id and a top-K query ordered by descending score.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pinecone import Pinecone

LOGGER = logging.getLogger(__name__)


@dataclass
class VectorMatch:
    """One nearest-neighbour hit."""

    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorIndex:
    """Interface shared by the vector backends."""

    async def upsert(self, record_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def fetch(self, record_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def query(self, vector: Sequence[float], top_k: int) -> List[VectorMatch]:
        raise NotImplementedError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of two equally sized vectors (0.0 for zero vectors)."""
    if len(a) != len(b):
        raise ValueError(f"Vector size mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if not norm_a or not norm_b:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorIndex(VectorIndex):
    """Process-local index scored with cosine similarity.

    Intended for local development; contents are lost on restart.
    """

    def __init__(self) -> None:
        self._vectors: Dict[str, List[float]] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}

    async def upsert(self, record_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        if not vector:
            raise ValueError("Vector must not be empty.")
        self._vectors[record_id] = [float(v) for v in vector]
        self._metadata[record_id] = dict(metadata)

    async def fetch(self, record_id: str) -> Optional[Dict[str, Any]]:
        metadata = self._metadata.get(record_id)
        return dict(metadata) if metadata is not None else None

    async def query(self, vector: Sequence[float], top_k: int) -> List[VectorMatch]:
        matches = [
            VectorMatch(id=record_id, score=cosine_similarity(vector, stored), metadata=dict(self._metadata[record_id]))
            for record_id, stored in self._vectors.items()
        ]
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches[: max(top_k, 0)]

    def __len__(self) -> int:
        return len(self._vectors)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from either a Pinecone model object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PineconeVectorIndex(VectorIndex):
    """Managed Pinecone index; the blocking client runs in worker threads."""

    def __init__(
        self,
        api_key: str,
        index_name: str,
        namespace: Optional[str] = None,
        timeout_s: float = 8.0,
        index: Any = None,
    ) -> None:
        if index is None:
            index = Pinecone(api_key=api_key).Index(index_name)
        self.index = index
        self.namespace = namespace
        self.timeout_s = timeout_s

    def _namespace_kwargs(self) -> Dict[str, Any]:
        return {"namespace": self.namespace} if self.namespace else {}

    async def _call(self, func, **kwargs):
        return await asyncio.wait_for(asyncio.to_thread(func, **kwargs), timeout=self.timeout_s)

    async def upsert(self, record_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        await self._call(
            self.index.upsert,
            vectors=[{"id": record_id, "values": list(vector), "metadata": metadata}],
            **self._namespace_kwargs(),
        )

    async def fetch(self, record_id: str) -> Optional[Dict[str, Any]]:
        response = await self._call(self.index.fetch, ids=[record_id], **self._namespace_kwargs())
        vectors = _field(response, "vectors") or {}
        vector = vectors.get(record_id)
        if vector is None:
            return None
        return dict(_field(vector, "metadata") or {})

    async def query(self, vector: Sequence[float], top_k: int) -> List[VectorMatch]:
        response = await self._call(
            self.index.query,
            vector=list(vector),
            top_k=top_k,
            include_values=False,
            include_metadata=True,
            **self._namespace_kwargs(),
        )
        matches = [
            VectorMatch(
                id=str(_field(match, "id")),
                score=float(_field(match, "score") or 0.0),
                metadata=dict(_field(match, "metadata") or {}),
            )
            for match in _field(response, "matches") or []
        ]
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches
