from fastapi import APIRouter, Request, HTTPException
from pydantic import BaseModel

from controllers.chat_controller import chat

router = APIRouter(tags=["chat"])


class ChatPayload(BaseModel):
    question: str


@router.post("/chat")
async def post_chat(request: Request, payload: ChatPayload):
    """Run retrieval and reply generation for a question, bypassing WhatsApp."""
    try:
        result = await chat(request, payload.question)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return result
