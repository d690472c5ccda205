import pytest
from fastapi.testclient import TestClient

from app import create_app
from conversation.service import ConversationService
from conversation.state_machine import ScriptedStrategy
from data.store import SQLStore
from deps import Services


class FakeMessenger:
    """Captures outbound WhatsApp messages instead of calling Twilio."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    def send(self, to, body):
        self.sent.append((to, body))
        return self.ok


@pytest.fixture
def store():
    s = SQLStore("sqlite://")
    s.init_db()
    return s

@pytest.fixture
def messenger():
    return FakeMessenger()

@pytest.fixture
def service(store, messenger):
    return ConversationService(store, messenger, ScriptedStrategy())

@pytest.fixture
def services(store, messenger, service):
    return Services(store=store, messenger=messenger, conversation=service)

@pytest.fixture
def client(services):
    return TestClient(create_app(services))
