"""FastAPI routes for the WhatsApp session: pairing, reset, status and manual send."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import AliasChoices, BaseModel, Field

from controllers.session_controller import disconnect_session, qr_page, send_message, session_status

router = APIRouter(tags=["session"])


class SendPayload(BaseModel):
	number: str = Field(..., validation_alias=AliasChoices("number", "numero"))
	message: str = Field(..., validation_alias=AliasChoices("message", "mensagem"))


@router.get("/qr")
async def qr_route(request: Request):
	try:
		return await qr_page(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/disconnect")
@router.post("/desconectar", include_in_schema=False)
async def disconnect_route(request: Request):
	try:
		return await disconnect_session(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/status")
async def status_route(request: Request):
	return await session_status(request)


@router.post("/send")
@router.post("/enviar", include_in_schema=False)
async def send_route(request: Request, payload: SendPayload):
	try:
		return await send_message(request, payload.number, payload.message)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
