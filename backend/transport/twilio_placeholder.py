from typing import Any, Dict, List, Optional
from conversation.service import ConversationService
from conversation.state_machine import ConversationStrategy, ScriptedStrategy
from data.store import SQLStore
from transport.twilio_whatsapp import WhatsAppMessenger

def in_memory_service(strategy: Optional[ConversationStrategy] = None) -> ConversationService:
    """Conversation host on a throwaway SQLite db with a dry-run messenger (no network)."""
    store = SQLStore("sqlite://")
    store.init_db()
    messenger = WhatsAppMessenger(client=None, from_number="", dry_run=True)
    return ConversationService(store, messenger, strategy or ScriptedStrategy())

def simulate_conversation(
    phone: str,
    utterances: List[str],
    service: Optional[ConversationService] = None,
) -> List[Dict[str, Any]]:
    service = service or in_memory_service()
    results = []
    for text in utterances:
        reply = service.handle_inbound(f"whatsapp:+{phone}", text)
        lead = service.store.get_lead(phone)
        results.append({"inbound": text, "reply": reply, "lead": lead})
        if lead.get("meeting_scheduled"):
            break
    return results
