from dataclasses import dataclass
from fastapi import Request

from conversation.service import ConversationService
from data.store import LeadStore

@dataclass
class Services:
    """Collaborators shared by the routers; built once in asgi.py (or by tests)."""
    store: LeadStore
    messenger: object               # anything with send(to, body) -> bool
    conversation: ConversationService
    twilio_auth_token: str = ""
    validate_signatures: bool = False

def get_services(request: Request) -> Services:
    return request.app.state.services
