import logging
import threading
from contextlib import contextmanager
from typing import Dict, List, Any, Optional
from data.phone import normalize_phone
from data.store import LeadStore
from .state_machine import ConversationStrategy, Step, FALLBACK_REPLY

logger = logging.getLogger(__name__)


class KeyedLock:
    """In-process mutual exclusion per key (normalized phone)."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            # drop the entry once nobody holds or waits on it
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]


class ConversationService:
    """
    Host for a conversation strategy: loads state, runs one turn, persists the
    patches, logs both sides and delivers the reply. Store and messenger
    failures are logged and never abort the turn.
    """

    def __init__(self, store: LeadStore, messenger, strategy: ConversationStrategy, locks: Optional[KeyedLock] = None):
        self.store = store
        self.messenger = messenger
        self.strategy = strategy
        self.locks = locks if locks is not None else KeyedLock()

    def handle_inbound(self, raw_from: Optional[str], body: Optional[str]) -> Optional[str]:
        phone = normalize_phone(raw_from)
        text = (body or "").strip()
        if not phone:
            logger.warning("Ignoring inbound message with no sender (from=%r)", raw_from)
            return None

        if not text:
            # media-only or empty message: generic reply, lead state untouched
            logger.info("Empty body from %s, sending generic reply", phone)
            step = Step("fallback", FALLBACK_REPLY)
            with self.locks.hold(phone):
                self.store.append_message(phone, "ai", step.message)
        else:
            logger.info("Incoming WhatsApp from %s: %r", phone, text[:80])
            with self.locks.hold(phone):
                history = self._history(phone)
                self.store.append_message(phone, "lead", text)
                lead = self.store.get_lead(phone)
                step = self._run(lead, history, text)
                logger.info("Next step phone=%s kind=%s", phone, step.kind)

                for patch in step.updates:
                    if not self.store.upsert_lead(phone, patch):
                        logger.error("Failed to persist %s for phone=%s", sorted(patch), phone)

                self.store.append_message(phone, "ai", step.message)

        if not self.messenger.send(phone, step.message):
            logger.error("Failed to deliver reply to %s", phone)
        return step.message

    def _history(self, phone: str) -> List[Dict[str, Any]]:
        if not self.strategy.needs_history:
            return []
        try:
            return self.store.list_messages(phone)
        except Exception:
            logger.exception("Could not load history for phone=%s", phone)
            return []

    def _run(self, lead: Dict[str, Any], history: List[Dict[str, Any]], text: str) -> Step:
        try:
            return self.strategy.next_step(lead, history, text)
        except Exception:
            logger.exception("Conversation strategy failed for phone=%s", lead.get("phone"))
            return Step("fallback", FALLBACK_REPLY)
