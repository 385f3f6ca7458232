"""Prompt helpers for WhatsApp product replies."""

from __future__ import annotations

from typing import Optional

from models.product_record import ProductRecord


def system_prompt() -> str:
    """Return the assistant persona used for every reply."""
    return (
        "You are a friendly sales assistant answering customers on WhatsApp. "
        "Reply in the customer's language, keep answers short enough to read on a phone, "
        "and never invent products, prices or stock that were not provided to you."
    )


def format_price(price: float) -> str:
    return f"{price:,.2f}"


def product_prompt(question: str, product: ProductRecord) -> str:
    """Return the user prompt grounded in a matched catalog product."""
    return (
        f"Customer message:\n{question}\n\n"
        "Matching product from the catalog:\n"
        f"Name: {product.name}\n"
        f"Description: {product.description}\n"
        f"Price: {format_price(product.price)}\n\n"
        "Answer the customer using only this product information."
    )


def fallback_prompt(question: str) -> str:
    """Return the user prompt used when no catalog product matched."""
    return (
        f"Customer message:\n{question}\n\n"
        "No catalog product matched this message. Answer politely; if the customer is looking "
        "for a product, say you could not find it and ask them to describe what they need."
    )


def reply_prompt(question: str, product: Optional[ProductRecord]) -> str:
    return product_prompt(question, product) if product is not None else fallback_prompt(question)
