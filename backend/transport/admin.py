# backend/transport/admin.py
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from conversation.script import prompt_for
from data.phone import normalize_phone
from deps import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter()

def _phone_or_400(raw: str) -> str:
    phone = normalize_phone(raw)
    if not phone:
        raise HTTPException(status_code=400, detail="A valid phone number is required")
    return phone

def _failure(error: str, exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, "details": str(exc)})

# ------------------------------------------------------------------------------
# Health / connectivity
# ------------------------------------------------------------------------------

@router.get("/")
def root():
    return {
        "status": "Real Estate WhatsApp bot is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@router.get("/health")
def health():
    return {"ok": True}

@router.get("/test-store")
@router.get("/test-supabase")
def test_store(services: Services = Depends(get_services)):
    try:
        sample = services.store.ping()
    except Exception as e:
        logger.error("Store connectivity check failed: %s", e)
        return JSONResponse(status_code=500, content={"status": "Store connection failed", "error": str(e)})
    return {"status": "Store connection successful", "tables": ["leads", "messages"], "sampleData": sample}

# ------------------------------------------------------------------------------
# Leads
# ------------------------------------------------------------------------------

@router.post("/lead")
def create_lead(payload: dict, services: Services = Depends(get_services)):
    """
    Body: { "name": "...", "phone": "+1...", "source": "optional" }
    Saves the lead and logs the first qualification question as the opener.
    """
    name = payload.get("name")
    raw_phone = payload.get("phone")
    if not name or not raw_phone or not isinstance(name, str) or not isinstance(raw_phone, str):
        raise HTTPException(status_code=400, detail="Name and phone are required fields")
    phone = _phone_or_400(raw_phone)
    source = payload.get("source") or "manual"

    if not services.store.upsert_lead(phone, {"name": name, "source": source}):
        return JSONResponse(status_code=500, content={"error": "Failed to save lead to database"})

    first_question = prompt_for(0)
    services.store.append_message(phone, "ai", first_question)
    return {
        "success": True,
        "message": "Lead created successfully",
        "first_question": first_question,
        "lead": {"name": name, "phone": phone, "source": source},
    }

@router.get("/leads")
def list_leads(services: Services = Depends(get_services)):
    try:
        leads = services.store.list_leads()
    except Exception as e:
        logger.error("Error fetching leads: %s", e)
        return _failure("Failed to fetch leads", e)
    return {"success": True, "count": len(leads), "leads": leads}

@router.get("/leads/{phone}/messages")
def list_messages(phone: str, services: Services = Depends(get_services)):
    key = _phone_or_400(phone)
    try:
        messages = services.store.list_messages(key)
    except Exception as e:
        logger.error("Error fetching messages phone=%s: %s", key, e)
        return _failure("Failed to fetch messages", e)
    return {"success": True, "count": len(messages), "messages": messages}

@router.post("/leads/{phone}/reply")
def agent_reply(phone: str, payload: dict, services: Services = Depends(get_services)):
    """Body: { "message": "..." }. Logged as an agent message and sent over WhatsApp."""
    message = payload.get("message")
    if not isinstance(message, str) or not message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    key = _phone_or_400(phone)

    services.store.append_message(key, "agent", message)
    if not services.messenger.send(f"+{key}", message.strip()):
        return JSONResponse(status_code=502, content={"success": False, "error": "Failed to send reply"})
    return {"success": True, "message": "Reply sent successfully"}

@router.patch("/leads/{phone}/notes")
def update_notes(phone: str, payload: dict, services: Services = Depends(get_services)):
    notes = payload.get("notes")
    if not isinstance(notes, str):
        raise HTTPException(status_code=400, detail="Notes must be a string")
    key = _phone_or_400(phone)
    try:
        lead = services.store.update_notes(key, notes)
    except Exception as e:
        logger.error("Error updating notes phone=%s: %s", key, e)
        return _failure("Failed to update notes", e)
    return {"success": True, "message": "Notes updated successfully", "lead": lead}
