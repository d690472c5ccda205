import logging

from app import create_app
from config import Settings, settings
from conversation.service import ConversationService
from conversation.state_machine import ConversationStrategy, ScriptedStrategy
from data.store import LeadStore, SQLStore
from data.supabase import SupabaseStore
from deps import Services
from llm.extraction import ExtractionStrategy
from llm.openai_client import ResponsesClient
from logging_config import setup_logging
from transport.twilio_whatsapp import WhatsAppMessenger, build_client

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------------------
# Bootstrapping: env -> logging -> store, messenger, conversation strategy
# ------------------------------------------------------------------------------

def build_store(cfg: Settings) -> LeadStore:
    if cfg.STORE_BACKEND == "supabase":
        return SupabaseStore(cfg.SUPABASE_URL, cfg.SUPABASE_KEY)
    store = SQLStore(cfg.DB_URL)
    store.init_db()  # create tables if they don't exist
    return store

def build_strategy(cfg: Settings) -> ConversationStrategy:
    if cfg.CONVERSATION_STRATEGY == "extraction":
        llm = ResponsesClient(api_key=cfg.OPENAI_API_KEY, model=cfg.OPENAI_RESPONSES_MODEL)
        if not llm.available():
            logger.warning(
                "CONVERSATION_STRATEGY=extraction without OPENAI_API_KEY; answers are recorded in script order"
            )
        return ExtractionStrategy(llm.complete, booking_link=cfg.BOOKING_LINK)
    return ScriptedStrategy(booking_link=cfg.BOOKING_LINK)

def build_services(cfg: Settings) -> Services:
    missing = cfg.missing()
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    store = build_store(cfg)
    messenger = WhatsAppMessenger(
        build_client(cfg.TWILIO_ACCOUNT_SID, cfg.TWILIO_AUTH_TOKEN),
        cfg.TWILIO_WHATSAPP_NUMBER,
        dry_run=cfg.WHATSAPP_DRY_RUN,
    )
    conversation = ConversationService(store, messenger, build_strategy(cfg))
    logger.info(
        "Lead bot ready: store=%s strategy=%s whatsapp=%s dry_run=%s",
        cfg.STORE_BACKEND, cfg.CONVERSATION_STRATEGY, cfg.TWILIO_WHATSAPP_NUMBER, cfg.WHATSAPP_DRY_RUN,
    )
    return Services(
        store=store,
        messenger=messenger,
        conversation=conversation,
        twilio_auth_token=cfg.TWILIO_AUTH_TOKEN,
        validate_signatures=cfg.TWILIO_VALIDATE_SIGNATURES,
    )

setup_logging(settings.LOG_LEVEL)
app = create_app(build_services(settings), cors_origins=settings.CORS_ORIGINS)

# Local run; `hypercorn asgi:app` from backend/ for prod-like behavior
if __name__ == "__main__":
    import asyncio
    from hypercorn.asyncio import serve
    from hypercorn.config import Config

    hc = Config()
    hc.bind = [f"0.0.0.0:{settings.PORT}"]
    asyncio.run(serve(app, hc))
