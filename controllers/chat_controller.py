"""Controller for the synchronous chat test endpoint."""

from typing import Any, Dict

from fastapi import HTTPException, Request

from services.whatsapp.message_pipeline import MessagePipeline


async def chat(request: Request, question: str) -> Dict[str, Any]:
    """Answer a question through retrieval and reply generation without WhatsApp.

    Returns:
        A dict with `reply` and `matchedRecord` (None when nothing passed the threshold).
    """
    cleaned = (question or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail="Question is required.")

    pipeline: MessagePipeline = request.app.state.pipeline
    reply, match = await pipeline.answer(cleaned)
    return {"reply": reply, "matchedRecord": match.to_dict() if match is not None else None}
