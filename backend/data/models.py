from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Lead(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(index=True, unique=True)   # digits only, see data.phone
    name: Optional[str] = None
    source: Optional[str] = None                  # manual | whatsapp

    current_question_index: int = 0
    qualification_complete: bool = False
    asked_for_meeting: bool = False
    meeting_scheduled: bool = False
    wants_meeting: Optional[bool] = None
    meeting_notes: Optional[str] = None
    lead_score: Optional[str] = None              # hot | warm | cold

    # qualification fields: free text, "unknown", or unset
    location: Optional[str] = None
    home_type: Optional[str] = None
    bedrooms: Optional[str] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None
    preapproval: Optional[str] = None
    motivation: Optional[str] = None

    notes: Optional[str] = None                   # agent-authored
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    lead_phone: str = Field(index=True)
    sender: str                                   # lead | ai | agent
    message: str
    created_at: datetime = Field(default_factory=_utcnow)
