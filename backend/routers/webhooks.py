import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.orm import Session

from backend.config import settings
from backend.database import get_db
from backend.errors import AuthenticationError
from backend.schemas.webhook import BotInboundOut
from backend.services.bot_platform import BotPlatformClient, get_bot_client
from backend.services.sms_gateway import TwilioGateway, get_sms_gateway, validate_twilio_signature
from backend.services.webhook_processor import handle_bot_inbound, handle_sms_inbound

logger = logging.getLogger("leadline")

router = APIRouter()

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


@router.post("/api/botpress/webhook", response_model=BotInboundOut)
def botpress_webhook(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    gateway: TwilioGateway = Depends(get_sms_gateway),
):
    logger.info(f"Received Botpress webhook payload: {json.dumps(payload, default=str)}")
    result = handle_bot_inbound(db, gateway, payload)
    return BotInboundOut(
        message_id=result.message.id,
        conversation_id=result.conversation.id,
        duplicate=result.duplicate,
    )


@router.post("/api/twilio/webhook")
async def twilio_webhook(
    request: Request,
    db: Session = Depends(get_db),
    bot_client: BotPlatformClient = Depends(get_bot_client),
):
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}

    signature = request.headers.get("x-twilio-signature")
    if signature and settings.twilio_validate_signature:
        # Twilio signs the public URL, which may differ from the proxied one
        host = request.headers.get("x-forwarded-host") or request.headers.get("host")
        protocol = request.headers.get("x-forwarded-proto") or "https"
        url = f"{protocol}://{host}{request.url.path}"
        if not validate_twilio_signature(settings.twilio_auth_token, signature, url, params):
            logger.warning(f"Invalid Twilio signature for {url}")
            raise AuthenticationError("Invalid Twilio signature")

    await asyncio.to_thread(handle_sms_inbound, db, bot_client, params)
    return Response(content=EMPTY_TWIML, media_type="application/xml")
