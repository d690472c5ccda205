import os
from typing import List
from dotenv import load_dotenv

load_dotenv()

def _as_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in ("1", "true", "yes", "y", "on")

def _as_int(name: str, default: int) -> int:
    try:
        return int(str(os.environ.get(name, default)).strip())
    except ValueError:
        return default

def _as_list(name: str, default: str) -> List[str]:
    raw = os.environ.get(name, default) or ""
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings:
    """
    Process configuration, read once from the environment (.env supported).
    Collaborators are built from this in asgi.py and passed down explicitly.
    """

    def __init__(self):
        self.PORT: int = _as_int("PORT", 5000)
        self.LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()
        self.CORS_ORIGINS: List[str] = _as_list("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

        # Store: "sql" (SQLModel, any SQLAlchemy URL) or "supabase" (PostgREST)
        self.STORE_BACKEND: str = os.environ.get("STORE_BACKEND", "sql").strip().lower()
        self.DB_URL: str = os.environ.get("DB_URL", "sqlite:///leads.db")
        self.SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "").rstrip("/")
        self.SUPABASE_KEY: str = os.environ.get("SUPABASE_KEY", "")

        # Twilio WhatsApp
        self.TWILIO_ACCOUNT_SID: str = os.environ.get("TWILIO_ACCOUNT_SID", "")
        self.TWILIO_AUTH_TOKEN: str = os.environ.get("TWILIO_AUTH_TOKEN", "")
        self.TWILIO_WHATSAPP_NUMBER: str = os.environ.get("TWILIO_WHATSAPP_NUMBER", "")
        self.WHATSAPP_DRY_RUN: bool = _as_bool("WHATSAPP_DRY_RUN", False)
        self.TWILIO_VALIDATE_SIGNATURES: bool = _as_bool("TWILIO_VALIDATE_SIGNATURES", False)

        # Conversation: "scripted" (fixed interview) or "extraction" (LLM over full history)
        self.CONVERSATION_STRATEGY: str = os.environ.get("CONVERSATION_STRATEGY", "scripted").strip().lower()
        self.OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")
        self.OPENAI_RESPONSES_MODEL: str = os.environ.get("OPENAI_RESPONSES_MODEL", "gpt-5")

        self.BOOKING_LINK: str = os.environ.get("BOOKING_LINK", "").strip()

    def missing(self) -> List[str]:
        """Names of required variables that are unset for the selected backends."""
        required = ["TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_WHATSAPP_NUMBER"]
        if self.WHATSAPP_DRY_RUN:
            required = []
        if self.STORE_BACKEND == "supabase":
            required += ["SUPABASE_URL", "SUPABASE_KEY"]
        return [name for name in required if not getattr(self, name)]


settings = Settings()
