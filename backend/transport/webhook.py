# backend/transport/webhook.py
import logging
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from twilio.request_validator import RequestValidator

from deps import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter()

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'

def _external_url(request: Request) -> str:
    # behind a proxy Twilio signs the public URL, not the one uvicorn/hypercorn sees
    hdr = request.headers
    proto = (hdr.get("x-forwarded-proto") or request.url.scheme or "https").split(",")[0].strip()
    host = (hdr.get("x-forwarded-host") or hdr.get("host") or request.url.netloc).split(",")[0].strip()
    return f"{proto}://{host}{request.url.path}"

async def _signature_ok(request: Request, auth_token: str) -> bool:
    signature = request.headers.get("X-Twilio-Signature", "")
    if not signature or not auth_token:
        return False
    form = await request.form()
    params = {k: v for k, v in form.items() if isinstance(v, str)}
    return bool(RequestValidator(auth_token).validate(_external_url(request), params, signature))

# ------------------------------------------------------------------------------
# Inbound WhatsApp (Twilio)
#
# Twilio posts From/Body as form fields. We always answer 200 with an empty
# TwiML document: the reply goes out through the REST API, and any non-2xx
# would make Twilio retry the same message.
# ------------------------------------------------------------------------------

@router.post("/whatsapp-webhook")
async def whatsapp_webhook(
    request: Request,
    From: str = Form(default=""),
    Body: str = Form(default=""),
    services: Services = Depends(get_services),
):
    if services.validate_signatures and not await _signature_ok(request, services.twilio_auth_token):
        logger.warning("Rejected WhatsApp webhook with invalid signature from=%r", From)
        raise HTTPException(status_code=403, detail="Invalid signature")

    try:
        await run_in_threadpool(services.conversation.handle_inbound, From, Body)
    except Exception:
        logger.exception("Error in WhatsApp webhook from=%r", From)

    return Response(EMPTY_TWIML, media_type="text/xml")
