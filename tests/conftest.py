import os
import sys
from datetime import datetime, timedelta

# Ensure project root is in sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app import app
from backend.config import settings
from backend.database import Base, get_db
from backend.errors import DeliveryError
from backend.models import Contact, Conversation, QualificationStatus
from backend.services.bot_platform import get_bot_client
from backend.services.sms_gateway import SendResult, get_sms_gateway


class FakeGateway:
    def __init__(self):
        self.sent = []
        self.result = SendResult(success=True, message_sid="SM-TEST-1", status="queued")

    def send(self, to, body):
        self.sent.append((to, body))
        return self.result


class FakeBotClient:
    configured = True

    def __init__(self):
        self.forwarded = []
        self.fail = False

    def forward_message(self, user_id, conversation_id, text):
        if self.fail:
            raise DeliveryError("Failed to forward message to bot platform", details="timeout")
        self.forwarded.append((user_id, conversation_id, text))


class Factory:
    """Builds committed rows for tests."""

    def __init__(self, db):
        self.db = db
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    def contact(self, phone="908-244-8429", **fields):
        fields.setdefault("name", "Jane Lead")
        fields.setdefault("first_name", "Jane")
        fields.setdefault("created_by", "agent-1")
        contact = Contact(phone=phone, **fields)
        self.db.add(contact)
        self.db.commit()
        return contact

    def conversation(self, contact, status="active", with_ids=True, **fields):
        self._clock += timedelta(minutes=1)
        fields.setdefault("created_at", self._clock)
        fields.setdefault("phone_number", contact.phone)
        if with_ids:
            fields.setdefault("botpress_conversation_id", "bp-conv-1")
            fields.setdefault("botpress_user_id", "bp-user-1")
        conversation = Conversation(
            contact_id=contact.id, conversation_status=status, **fields
        )
        self.db.add(conversation)
        self.db.commit()
        return conversation

    def automation(self, contact, enabled):
        row = QualificationStatus(contact_id=contact.id, automation_enabled=enabled)
        self.db.add(row)
        self.db.commit()
        return row


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(settings, "expose_diagnostics", True)
    monkeypatch.setattr(settings, "dual_write_mode", "best_effort")
    monkeypatch.setattr(settings, "twilio_validate_signature", True)
    monkeypatch.setattr(settings, "twilio_auth_token", "")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def bot_client():
    return FakeBotClient()


@pytest.fixture
def client(db, gateway, bot_client):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sms_gateway] = lambda: gateway
    app.dependency_overrides[get_bot_client] = lambda: bot_client
    yield TestClient(app)
    app.dependency_overrides.clear()
