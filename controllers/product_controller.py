"""Controller for catalog ingestion."""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from models.product_record import ProductRecord
from services.retrieval.product_retriever import ProductRetriever

LOGGER = logging.getLogger(__name__)


async def add_product(
    request: Request,
    name: str,
    description: str,
    price: float,
    product_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Embed a product and store it in the vector index.

    Args:
        request: FastAPI Request (used to access app.state.retriever).
        name: Product name.
        description: Product description used for retrieval and replies.
        price: Unit price.
        product_id: Optional explicit id; defaults to a slug of the name.

    Returns:
        A dict with the stored id and a confirmation message.

    Raises:
        HTTPException(400) for invalid input, HTTPException(502) if the embedding or index call fails.
    """
    retriever: ProductRetriever = request.app.state.retriever
    product = ProductRecord(name=name.strip(), description=description.strip(), price=price, id=product_id or None)
    try:
        stored = await retriever.ingest(product)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # pylint: disable=broad-exception-caught
        LOGGER.error(f"Product ingestion failed: {exc!r}")
        raise HTTPException(status_code=502, detail="Failed to store product in the vector index.") from exc

    return {"id": stored.id, "message": f"Product '{stored.name}' saved."}
