"""FastAPI routes for catalog ingestion."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from controllers.product_controller import add_product

router = APIRouter(tags=["products"])


class ProductPayload(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    id: Optional[str] = None


@router.post("/product", summary="Embed and store a catalog product")
async def post_product(request: Request, payload: ProductPayload):
    """Store a product so inbound questions can be matched against it."""
    try:
        return await add_product(request, payload.name, payload.description, payload.price, payload.id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
