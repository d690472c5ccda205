import logging
from typing import Dict, Any, List, Optional, Protocol
from datetime import datetime, timezone
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session, select
from .models import Lead, Message
from .phone import normalize_phone

logger = logging.getLogger(__name__)

SENDERS = ("lead", "ai", "agent")

# columns a caller may write through upsert_lead
WRITABLE_FIELDS = frozenset(Lead.model_fields) - {"id", "phone", "created_at", "updated_at"}

def default_lead_state(phone: str) -> Dict[str, Any]:
    """Snapshot used for a phone that has no row yet (or when the store is unreachable)."""
    return {
        "phone": normalize_phone(phone),
        "current_question_index": 0,
        "qualification_complete": False,
        "asked_for_meeting": False,
        "meeting_scheduled": False,
        "wants_meeting": None,
        "meeting_notes": None,
        "lead_score": None,
        "location": None,
        "home_type": None,
        "bedrooms": None,
        "budget": None,
        "timeline": None,
        "preapproval": None,
        "motivation": None,
        "notes": None,
    }


class LeadStore(Protocol):
    def upsert_lead(self, phone: str, fields: Dict[str, Any]) -> bool: ...
    def get_lead(self, phone: str) -> Dict[str, Any]: ...
    def append_message(self, phone: str, sender: str, text: str) -> bool: ...
    def list_leads(self) -> List[Dict[str, Any]]: ...
    def list_messages(self, phone: str) -> List[Dict[str, Any]]: ...
    def update_notes(self, phone: str, notes: str) -> Optional[Dict[str, Any]]: ...
    def ping(self) -> List[Dict[str, Any]]: ...


def make_engine(db_url: str):
    if db_url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, **kwargs)
    return create_engine(db_url, pool_pre_ping=True)


class SQLStore:
    """
    LeadStore on SQLModel. Works against SQLite locally and against the hosted
    Postgres in production (DB_URL). Write helpers never raise: failures are
    logged and reported through the return value.
    """

    def __init__(self, db_url: str = "sqlite:///leads.db", engine=None):
        self.engine = engine if engine is not None else make_engine(db_url)

    def init_db(self):
        SQLModel.metadata.create_all(self.engine)

    def upsert_lead(self, phone: str, fields: Dict[str, Any]) -> bool:
        key = normalize_phone(phone)
        if not key:
            logger.error("Refusing to save lead without a phone: %s", fields)
            return False
        updates = {k: v for k, v in (fields or {}).items() if k in WRITABLE_FIELDS}
        try:
            with Session(self.engine) as s:
                lead = s.exec(select(Lead).where(Lead.phone == key)).first()
                if not lead:
                    lead = Lead(phone=key, **updates)
                else:
                    for k, v in updates.items():
                        setattr(lead, k, v)
                    lead.updated_at = datetime.now(timezone.utc)
                s.add(lead)
                s.commit()
            logger.info("Lead saved phone=%s fields=%s", key, sorted(updates))
            return True
        except Exception:
            logger.exception("Error saving lead phone=%s", key)
            return False

    def get_lead(self, phone: str) -> Dict[str, Any]:
        key = normalize_phone(phone)
        try:
            with Session(self.engine) as s:
                lead = s.exec(select(Lead).where(Lead.phone == key)).first()
                if lead:
                    return lead.model_dump()
        except Exception:
            logger.exception("Error fetching lead phone=%s, using default state", key)
        return default_lead_state(key)

    def append_message(self, phone: str, sender: str, text: str) -> bool:
        key = normalize_phone(phone)
        if sender not in SENDERS:
            logger.error("Unknown sender %r for phone=%s", sender, key)
            return False
        try:
            with Session(self.engine) as s:
                s.add(Message(lead_phone=key, sender=sender, message=(text or "").strip()))
                s.commit()
            return True
        except Exception:
            logger.exception("Error saving %s message phone=%s", sender, key)
            return False

    def list_leads(self) -> List[Dict[str, Any]]:
        with Session(self.engine) as s:
            rows = s.exec(select(Lead).order_by(Lead.created_at.desc(), Lead.id.desc())).all()
            return [r.model_dump() for r in rows]

    def list_messages(self, phone: str) -> List[Dict[str, Any]]:
        key = normalize_phone(phone)
        with Session(self.engine) as s:
            rows = s.exec(
                select(Message)
                .where(Message.lead_phone == key)
                .order_by(Message.created_at, Message.id)
            ).all()
            return [r.model_dump() for r in rows]

    def update_notes(self, phone: str, notes: str) -> Optional[Dict[str, Any]]:
        key = normalize_phone(phone)
        with Session(self.engine) as s:
            lead = s.exec(select(Lead).where(Lead.phone == key)).first()
            if not lead:
                return None
            lead.notes = notes
            lead.updated_at = datetime.now(timezone.utc)
            s.add(lead)
            s.commit()
            s.refresh(lead)
            return lead.model_dump()

    def ping(self) -> List[Dict[str, Any]]:
        with Session(self.engine) as s:
            return [r.model_dump() for r in s.exec(select(Lead).limit(1)).all()]
