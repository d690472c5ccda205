import logging
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
import requests
from .phone import normalize_phone
from .store import SENDERS, default_lead_state

logger = logging.getLogger(__name__)

TIMEOUT = 10

class SupabaseStore:
    """
    LeadStore over Supabase's PostgREST API (tables `leads` and `messages`).
    Same contract as SQLStore: writes return a success flag, get_lead falls
    back to the default state.
    """

    def __init__(self, url: str, key: str, session: Optional[requests.Session] = None):
        self.base = f"{url.rstrip('/')}/rest/v1"
        self.http = session or requests.Session()
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def _headers(self, prefer: str) -> Dict[str, str]:
        return {**self.headers, "Prefer": prefer}

    def upsert_lead(self, phone: str, fields: Dict[str, Any]) -> bool:
        key = normalize_phone(phone)
        if not key:
            logger.error("Refusing to save lead without a phone: %s", fields)
            return False
        row = {**(fields or {}), "phone": key, "updated_at": datetime.now(timezone.utc).isoformat()}
        row.pop("id", None)
        try:
            resp = self.http.post(
                f"{self.base}/leads",
                params={"on_conflict": "phone"},
                json=[row],
                headers=self._headers("resolution=merge-duplicates,return=minimal"),
                timeout=TIMEOUT,
            )
            resp.raise_for_status()
            logger.info("Lead saved phone=%s fields=%s", key, sorted(fields or {}))
            return True
        except requests.RequestException as e:
            body = getattr(getattr(e, "response", None), "text", "")
            logger.error("Supabase error saving lead phone=%s: %s %s", key, e, body)
            return False

    def get_lead(self, phone: str) -> Dict[str, Any]:
        key = normalize_phone(phone)
        try:
            resp = self.http.get(
                f"{self.base}/leads",
                params={"phone": f"eq.{key}", "select": "*"},
                headers=self.headers,
                timeout=TIMEOUT,
            )
            resp.raise_for_status()
            rows = resp.json()
            if rows:
                return rows[0]
        except (requests.RequestException, ValueError) as e:
            logger.error("Error fetching lead phone=%s, using default state: %s", key, e)
        return default_lead_state(key)

    def append_message(self, phone: str, sender: str, text: str) -> bool:
        key = normalize_phone(phone)
        if sender not in SENDERS:
            logger.error("Unknown sender %r for phone=%s", sender, key)
            return False
        try:
            resp = self.http.post(
                f"{self.base}/messages",
                json={"lead_phone": key, "sender": sender, "message": (text or "").strip()},
                headers=self._headers("return=minimal"),
                timeout=TIMEOUT,
            )
            resp.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.error("Error saving %s message phone=%s: %s", sender, key, e)
            return False

    def list_leads(self) -> List[Dict[str, Any]]:
        resp = self.http.get(
            f"{self.base}/leads",
            params={"select": "*", "order": "created_at.desc"},
            headers=self.headers,
            timeout=TIMEOUT,
        )
        resp.raise_for_status()
        return resp.json()

    def list_messages(self, phone: str) -> List[Dict[str, Any]]:
        resp = self.http.get(
            f"{self.base}/messages",
            params={"lead_phone": f"eq.{normalize_phone(phone)}", "select": "*", "order": "created_at.asc"},
            headers=self.headers,
            timeout=TIMEOUT,
        )
        resp.raise_for_status()
        return resp.json()

    def update_notes(self, phone: str, notes: str) -> Optional[Dict[str, Any]]:
        resp = self.http.patch(
            f"{self.base}/leads",
            params={"phone": f"eq.{normalize_phone(phone)}"},
            json={"notes": notes},
            headers=self._headers("return=representation"),
            timeout=TIMEOUT,
        )
        resp.raise_for_status()
        rows = resp.json() if resp.content else []
        return rows[0] if rows else None

    def ping(self) -> List[Dict[str, Any]]:
        resp = self.http.get(f"{self.base}/leads", params={"limit": 1}, headers=self.headers, timeout=TIMEOUT)
        resp.raise_for_status()
        return resp.json()
