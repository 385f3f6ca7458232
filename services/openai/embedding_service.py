"""Text embeddings via the OpenAI embeddings endpoint."""

import asyncio
import logging
import time
from typing import List

from openai import AsyncOpenAI

LOGGER = logging.getLogger(__name__)
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"


class EmbeddingService:
    """Turn product descriptions and customer questions into vectors."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_EMBEDDING_MODEL, timeout_s: float = 8.0) -> None:
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client
        self.model = model
        self.timeout_s = timeout_s

    async def embed(self, text: str) -> List[float]:
        """Return the embedding vector for a single text.

        Args:
            text: Non-empty text to embed.

        Returns:
            The embedding as a list of floats.

        Raises:
            ValueError: If the text is empty.
            asyncio.TimeoutError: If the call exceeds `timeout_s`.
            RuntimeError: If the response carries no embedding.
        """
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValueError("Text to embed must not be empty.")

        start = time.time()
        response = await asyncio.wait_for(
            self.client.embeddings.create(model=self.model, input=cleaned),
            timeout=self.timeout_s,
        )
        data = getattr(response, "data", None) or []
        if not data:
            raise RuntimeError("Embedding response contained no data.")
        LOGGER.debug(f"Embedding latency: {time.time() - start:.3f}s")
        return list(data[0].embedding)
