import requests

from data.store import default_lead_state
from data.supabase import SupabaseStore


class FakeResponse:
    def __init__(self, status=200, payload=None):
        self.status_code = status
        self._payload = payload
        self.content = b"" if payload is None else b"x"
        self.text = ""

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response or FakeResponse(201)
        self.exc = exc
        self.calls = []

    def _call(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.exc:
            raise self.exc
        return self.response

    def get(self, url, **kwargs):
        return self._call("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._call("POST", url, **kwargs)

    def patch(self, url, **kwargs):
        return self._call("PATCH", url, **kwargs)


def make_store(session):
    return SupabaseStore("https://demo.supabase.co/", "secret", session=session)


def test_upsert_posts_merge_on_phone():
    session = FakeSession()
    assert make_store(session).upsert_lead("whatsapp:+15551234567", {"location": "Phoenix"})

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://demo.supabase.co/rest/v1/leads")
    assert kwargs["params"] == {"on_conflict": "phone"}
    assert kwargs["json"][0]["phone"] == "15551234567"
    assert kwargs["json"][0]["location"] == "Phoenix"
    assert "merge-duplicates" in kwargs["headers"]["Prefer"]
    assert kwargs["headers"]["apikey"] == "secret"


def test_upsert_failure_returns_false():
    session = FakeSession(response=FakeResponse(409))
    assert make_store(session).upsert_lead("15551234567", {"location": "Phoenix"}) is False

    session = FakeSession(exc=requests.ConnectionError("down"))
    assert make_store(session).upsert_lead("15551234567", {"location": "Phoenix"}) is False


def test_get_lead_found_and_default():
    row = dict(default_lead_state("15551234567"), location="Phoenix")
    session = FakeSession(response=FakeResponse(200, [row]))
    store = make_store(session)
    assert store.get_lead("+15551234567")["location"] == "Phoenix"
    assert session.calls[0][2]["params"]["phone"] == "eq.15551234567"

    empty = make_store(FakeSession(response=FakeResponse(200, [])))
    assert empty.get_lead("15551234567") == default_lead_state("15551234567")

    down = make_store(FakeSession(exc=requests.Timeout("slow")))
    assert down.get_lead("15551234567") == default_lead_state("15551234567")


def test_append_message_strips_text():
    session = FakeSession()
    assert make_store(session).append_message("whatsapp:+15551234567", "lead", "  hi  ")
    assert session.calls[0][2]["json"] == {"lead_phone": "15551234567", "sender": "lead", "message": "hi"}


def test_list_messages_ordered_ascending():
    session = FakeSession(response=FakeResponse(200, [{"message": "a"}]))
    assert make_store(session).list_messages("+15551234567") == [{"message": "a"}]
    params = session.calls[0][2]["params"]
    assert params["order"] == "created_at.asc"
    assert params["lead_phone"] == "eq.15551234567"


def test_update_notes_returns_row():
    session = FakeSession(response=FakeResponse(200, [{"phone": "15551234567", "notes": "vip"}]))
    assert make_store(session).update_notes("15551234567", "vip") == {"phone": "15551234567", "notes": "vip"}
    assert session.calls[0][0] == "PATCH"
