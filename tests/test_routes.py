from backend.config import settings
from backend.models import Message
from backend.services.sms_gateway import SendResult, compute_twilio_signature


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_pause_endpoint(client, factory):
    contact = factory.contact()
    conversation = factory.conversation(contact, "active")

    resp = client.post("/api/botpress/pause-conversation", json={"contactId": contact.id})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Conversation paused successfully",
        "conversationId": conversation.id,
        "conversationStatus": "paused",
        "reason": "user_paused",
    }


def test_pause_missing_contact_id(client):
    resp = client.post("/api/botpress/pause-conversation", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing or invalid required field: contactId"


def test_pause_errors_map_to_status_codes(client, factory):
    contact = factory.contact()
    resp = client.post("/api/botpress/pause-conversation", json={"contactId": contact.id})
    assert resp.status_code == 404
    assert resp.json()["error"] == "No conversation found for this contact"

    factory.conversation(contact, "ended")
    resp = client.post("/api/botpress/pause-conversation", json={"contactId": contact.id})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot pause an ended conversation"}


def test_resume_endpoint(client, factory):
    contact = factory.contact()
    conversation = factory.conversation(contact, "paused", automation_pause_reason="user_paused")

    resp = client.post("/api/botpress/resume-conversation", json={"contactId": contact.id})

    assert resp.status_code == 200
    body = resp.json()
    assert body["conversationId"] == conversation.id
    assert body["conversationStatus"] == "active"
    assert body["botpressConversationId"] == "bp-conv-1"
    assert body["botpressUserId"] == "bp-user-1"


def test_resume_without_integration_ids(client, factory):
    contact = factory.contact()
    factory.conversation(contact, "paused", with_ids=False)

    resp = client.post("/api/botpress/resume-conversation", json={"contactId": contact.id})

    assert resp.status_code == 400
    assert "missing Botpress integration data" in resp.json()["error"]


def test_end_endpoint(client, factory):
    contact = factory.contact()
    factory.conversation(contact, "active")

    resp = client.post("/api/botpress/end-conversation", json={"contactId": contact.id})

    assert resp.status_code == 200
    body = resp.json()
    assert body["conversationStatus"] == "ended"
    assert body["endedAt"] is not None


def test_automation_toggle_and_read(client, factory):
    contact = factory.contact()
    factory.conversation(contact, "active")

    resp = client.get(f"/api/contacts/{contact.id}/automation")
    assert resp.json() == {
        "contactId": contact.id,
        "automation_enabled": False,
        "automation_setting": "unset",
        "qualification_status": None,
    }

    resp = client.post(
        f"/api/contacts/{contact.id}/automation",
        json={"automation_enabled": False, "reason": "lead asked to stop"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["contactId"] == contact.id
    assert body["automation_enabled"] is False
    assert body["qualification_status"]["contact_id"] == contact.id

    status = client.get(f"/api/contacts/{contact.id}/conversation-status").json()
    assert status["conversation_status"] == "paused"
    assert status["conversation"]["automation_pause_reason"] == "automation_disabled"


def test_automation_toggle_rejects_non_boolean(client, factory):
    contact = factory.contact()
    resp = client.post(f"/api/contacts/{contact.id}/automation", json={"automation_enabled": "yes"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing or invalid required field: automation_enabled"


def test_conversation_status_not_started(client, factory):
    contact = factory.contact()
    resp = client.get(f"/api/contacts/{contact.id}/conversation-status")
    body = resp.json()
    assert body["contactId"] == contact.id
    assert body["conversation_status"] == "not_started"
    assert body["conversation"] is None


def test_botpress_webhook(client, factory, gateway):
    contact = factory.contact()
    conversation = factory.conversation(contact, "active")

    resp = client.post(
        "/api/botpress/webhook", json={"conversationId": conversation.id, "text": "Hi there"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["conversationId"] == conversation.id
    assert body["duplicate"] is False
    assert len(gateway.sent) == 1


def test_botpress_webhook_delivery_failure(client, factory, gateway, db):
    gateway.result = SendResult(success=False, error="Invalid 'To' Phone Number")
    contact = factory.contact()
    conversation = factory.conversation(contact, "active")

    resp = client.post(
        "/api/botpress/webhook", json={"conversationId": conversation.id, "text": "Hi"}
    )

    assert resp.status_code == 502
    assert resp.json()["error"] == "Failed to send SMS"
    assert resp.json()["details"] == "Invalid 'To' Phone Number"
    assert db.query(Message).one().delivery_status == "failed"


def test_botpress_webhook_redelivery_after_failure_resends(client, factory, gateway, db):
    gateway.result = SendResult(success=False, error="Twilio down")
    contact = factory.contact()
    conversation = factory.conversation(contact, "active")
    payload = {"conversationId": conversation.id, "text": "Hi", "metadata": {"messageId": "m2"}}

    assert client.post("/api/botpress/webhook", json=payload).status_code == 502

    gateway.result = SendResult(success=True, message_sid="SM-2", status="queued")
    resp = client.post("/api/botpress/webhook", json=payload)

    assert resp.status_code == 200
    assert resp.json()["duplicate"] is False
    assert len(gateway.sent) == 2
    assert db.query(Message).one().delivery_status == "delivered"


def test_botpress_webhook_malformed_text_is_client_error(client, factory):
    contact = factory.contact()
    conversation = factory.conversation(contact, "active")

    resp = client.post(
        "/api/botpress/webhook", json={"conversationId": conversation.id, "text": {"a": 1}}
    )

    assert resp.status_code == 400
    assert resp.json()["receivedPayload"]["text"] == {"a": 1}


def test_botpress_webhook_diagnostics_are_gated(client, monkeypatch):
    payload = {"conversationId": "missing", "text": "Hi"}

    resp = client.post("/api/botpress/webhook", json=payload)
    assert resp.status_code == 404
    assert resp.json()["searchedId"] == "missing"
    assert resp.json()["recentConversations"] == []

    monkeypatch.setattr(settings, "expose_diagnostics", False)
    resp = client.post("/api/botpress/webhook", json=payload)
    assert resp.json() == {"error": "Conversation not found"}

    resp = client.post("/api/botpress/webhook", json={"text": "Hi"})
    assert resp.status_code == 400
    assert "receivedPayload" not in resp.json()


def test_botpress_webhook_echoes_payload_when_invalid(client):
    resp = client.post("/api/botpress/webhook", json={"text": "Hi"})
    assert resp.status_code == 400
    assert resp.json()["receivedPayload"] == {"text": "Hi"}


def _twilio_form():
    return {
        "MessageSid": "SM-IN-9",
        "From": "+19082448429",
        "To": "+15555550100",
        "Body": "Is it still available?",
    }


def test_twilio_webhook_returns_twiml(client, db):
    resp = client.post("/api/twilio/webhook", data=_twilio_form())

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert "<Response></Response>" in resp.text
    assert db.query(Message).one().provider_message_id == "SM-IN-9"


def test_twilio_webhook_rejects_bad_signature(client, monkeypatch, db):
    monkeypatch.setattr(settings, "twilio_auth_token", "secret")

    resp = client.post(
        "/api/twilio/webhook", data=_twilio_form(), headers={"X-Twilio-Signature": "bogus"}
    )

    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid Twilio signature"}
    assert db.query(Message).count() == 0


def test_twilio_webhook_accepts_valid_signature(client, monkeypatch):
    monkeypatch.setattr(settings, "twilio_auth_token", "secret")
    form = _twilio_form()
    signature = compute_twilio_signature(
        "secret", "https://testserver/api/twilio/webhook", form
    )

    resp = client.post("/api/twilio/webhook", data=form, headers={"X-Twilio-Signature": signature})

    assert resp.status_code == 200


def test_list_contacts_and_messages(client, factory):
    contact = factory.contact(phone="(908) 244-8429")
    conversation = factory.conversation(contact, "active")
    client.post("/api/botpress/webhook", json={"conversationId": conversation.id, "text": "Hi"})

    contacts = client.get("/api/contacts", params={"phone": "+19082448429"}).json()
    assert [c["id"] for c in contacts] == [contact.id]

    messages = client.get("/api/messages", params={"conversation_id": conversation.id}).json()
    assert len(messages) == 1
    assert "sms_error" not in messages[0]["metadata"]

    resp = client.get(f"/api/messages/{messages[0]['id']}")
    assert resp.status_code == 200
    assert client.get("/api/messages/unknown").status_code == 404
    assert client.get("/api/contacts/unknown").status_code == 404
