"""Product ingestion and best-match lookup over the vector index."""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Optional

from models.product_record import ProductRecord, RetrievedRecord
from services.openai.embedding_service import EmbeddingService
from services.retrieval.vector_index import VectorIndex

LOGGER = logging.getLogger(__name__)


def product_id_for(name: str) -> str:
    """Derive a stable vector id from a product name."""
    normalized = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    if not slug:
        raise ValueError("Product name must contain at least one letter or digit.")
    return slug


class ProductRetriever:
    """Embed text and consult the vector index for the best catalog match."""

    def __init__(
        self,
        index: VectorIndex,
        embeddings: EmbeddingService,
        threshold: float = 0.5,
        top_k: int = 3,
    ) -> None:
        self.index = index
        self.embeddings = embeddings
        self.threshold = threshold
        self.top_k = top_k

    async def ingest(self, product: ProductRecord) -> ProductRecord:
        """Embed and upsert a product, replacing any record with the same id.

        Raises:
            ValueError: If the product has no usable name.
        """
        if not product.name or not product.name.strip():
            raise ValueError("Product name is required.")
        product.id = product.id or product_id_for(product.name)
        vector = await self.embeddings.embed(product.embedding_text())
        await self.index.upsert(product.id, vector, product.to_metadata())
        LOGGER.info("Product %s stored in the vector index", product.id)
        return product

    async def lookup(self, question: str) -> Optional[RetrievedRecord]:
        """Return the best match scoring at or above the threshold.

        Remote failures propagate to the caller.
        """
        vector = await self.embeddings.embed(question)
        matches = await self.index.query(vector, self.top_k)
        if not matches:
            return None
        best = matches[0]
        if best.score < self.threshold:
            LOGGER.debug(f"Best match {best.id} scored {best.score:.3f} below threshold {self.threshold}")
            return None
        return RetrievedRecord(
            record=ProductRecord.from_metadata(best.metadata, record_id=best.id),
            relevance_score=best.score,
        )

    async def best_match(self, question: str) -> Optional[RetrievedRecord]:
        """Like `lookup`, but a failing embedding or index call yields no match."""
        try:
            return await self.lookup(question)
        except Exception as exc:
            LOGGER.error(f"Product retrieval failed: {exc!r}")
            return None
