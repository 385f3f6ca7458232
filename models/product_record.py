from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass
class ProductRecord:
    """Catalog entry stored as vector metadata.

    Attributes:
        name: Product name shown to customers.
        description: Free text used both for the embedding and the reply prompt.
        price: Unit price as provided by the operator.
        id: Stable vector id (None until assigned at ingestion).
    """

    name: str
    description: str
    price: float
    id: Optional[str] = None

    def to_metadata(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("id")
        return data

    @classmethod
    def from_metadata(cls, metadata: Dict[str, Any], record_id: Optional[str] = None) -> "ProductRecord":
        try:
            price = float(metadata.get("price") or 0)
        except (TypeError, ValueError):
            price = 0.0
        return cls(
            name=str(metadata.get("name") or ""),
            description=str(metadata.get("description") or ""),
            price=price,
            id=record_id,
        )

    def embedding_text(self) -> str:
        """Text sent to the embedding model when the product is ingested."""
        return f"{self.name}: {self.description}"


@dataclass
class RetrievedRecord:
    """A product returned by retrieval together with its similarity score."""

    record: ProductRecord
    relevance_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.record.id,
            "name": self.record.name,
            "description": self.record.description,
            "price": self.record.price,
            "relevance_score": self.relevance_score,
        }
