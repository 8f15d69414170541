"""
Inbound webhook processing.

handle_bot_inbound: a bot reply from Botpress is logged as an outbound
message and relayed to the lead over SMS. The row is written first, then
sent, then its delivery status is updated, so a failed send still leaves a
"failed" record behind.

handle_sms_inbound: a lead's SMS from Twilio is logged against the contact's
current conversation and handed to the bot only if automation is permitted.

Both are idempotent on the upstream message id. A redelivered bot reply
whose earlier send failed is sent again on the same row.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.errors import DeliveryError, NotFoundError, StorageError, ValidationError
from backend.models.contact import Contact
from backend.models.conversation import Conversation, ConversationStatus
from backend.models.message import DeliveryStatus, Message, MessageDirection
from backend.services.automation_gate import is_automation_permitted
from backend.services.bot_platform import BotPlatformClient
from backend.services.dual_write import commit_or_raise
from backend.services.phone import normalize_phone_number
from backend.services.repository import (
    find_contact_by_phone,
    find_message_by_external_id,
    find_message_by_provider_id,
    get_conversation,
    get_current_conversation,
    recent_conversations,
)
from backend.services.sms_gateway import TwilioGateway
from backend.services.transitions import ConversationAction, plan_transition

logger = logging.getLogger("leadline")

BOT_SOURCE = "bot_platform"
SMS_SOURCE = "sms"


@dataclass
class InboundResult:
    message: Message
    conversation: Conversation
    duplicate: bool = False
    forwarded: bool = False


def _store_message(db: Session, message: Message, lookup_existing) -> Optional[Message]:
    """
    Commit a new message row. If the unique dedup key was taken by a
    concurrent delivery, return that row instead.
    """
    db.add(message)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        existing = lookup_existing()
        if existing is not None:
            return existing
        raise StorageError("Failed to store message", diagnostics={"dbError": str(e)}) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to store message", diagnostics={"dbError": str(e)}) from e
    return None


def _deliver(db: Session, gateway: TwilioGateway, message: Message, conversation: Conversation) -> None:
    """Send a stored outbound row over SMS and record how it went."""
    to = conversation.phone_number or (conversation.contact.phone if conversation.contact else "")
    result = gateway.send(to, message.content)

    message.delivery_status = (
        DeliveryStatus.DELIVERED.value if result.success else DeliveryStatus.FAILED.value
    )
    message.provider_message_id = result.message_sid
    meta = {key: value for key, value in (message.meta or {}).items() if key != "sms_error"}
    if result.error:
        meta["sms_error"] = result.error
    message.meta = meta
    commit_or_raise(db, "Failed to update message delivery status")

    if not result.success:
        logger.error(f"SMS delivery failed for message {message.id}: {result.error}")
        raise DeliveryError(
            "Failed to send SMS",
            details=result.error,
            diagnostics={"messageId": message.id, "conversationId": conversation.id},
        )


def _replay(
    db: Session, gateway: TwilioGateway, existing: Message, conversation: Conversation
) -> InboundResult:
    # A redelivered event whose send failed gets another attempt on the same row
    if existing.delivery_status == DeliveryStatus.FAILED.value:
        logger.info(f"Retrying failed bot message {existing.external_message_id} (message {existing.id})")
        _deliver(db, gateway, existing, conversation)
        return InboundResult(existing, conversation)
    logger.info(f"Duplicate bot message {existing.external_message_id} ignored (message {existing.id})")
    return InboundResult(existing, conversation, duplicate=True)


def handle_bot_inbound(db: Session, gateway: TwilioGateway, payload: dict) -> InboundResult:
    conversation_id = payload.get("conversationId")
    text = payload.get("text")
    if not conversation_id or not text:
        raise ValidationError(
            "Missing required fields: conversationId and text",
            diagnostics={"receivedPayload": payload},
        )
    valid_id = isinstance(conversation_id, (str, int)) and not isinstance(conversation_id, bool)
    if not valid_id or not isinstance(text, str):
        raise ValidationError(
            "Malformed fields: conversationId and text must be strings",
            diagnostics={"receivedPayload": payload},
        )

    metadata = payload.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {"value": metadata}

    # conversationId is our own conversation id, not the Botpress one
    conversation = get_conversation(db, str(conversation_id))
    if conversation is None:
        raise NotFoundError(
            "Conversation not found",
            diagnostics={
                "searchedId": conversation_id,
                "recentConversations": recent_conversations(db, limit=5),
            },
        )
    plan_transition(conversation.status, ConversationAction.INBOUND_MESSAGE)

    external_id = metadata.get("messageId")
    external_id = str(external_id) if external_id else None
    if external_id:
        existing = find_message_by_external_id(db, external_id)
        if existing is not None:
            return _replay(db, gateway, existing, conversation)

    meta = dict(metadata)
    if payload.get("userId"):
        meta["botpress_user_id"] = payload["userId"]
    message = Message(
        conversation_id=conversation.id,
        direction=MessageDirection.OUTBOUND.value,
        source=BOT_SOURCE,
        message_type="text",
        content=text,
        delivery_status=DeliveryStatus.PENDING.value,
        external_message_id=external_id,
        meta=meta,
    )
    existing = _store_message(
        db, message, lambda: find_message_by_external_id(db, external_id) if external_id else None
    )
    if existing is not None:
        logger.info(f"Bot message {external_id} lost insert race to message {existing.id}")
        return _replay(db, gateway, existing, conversation)

    _deliver(db, gateway, message, conversation)
    logger.info(f"Relayed bot message {message.id} for conversation {conversation.id}")
    return InboundResult(message, conversation)


def handle_sms_inbound(db: Session, bot_client: BotPlatformClient, form: dict) -> InboundResult:
    message_sid = form.get("MessageSid")
    sender = form.get("From")
    body = form.get("Body")
    if not message_sid or not sender or not body:
        raise ValidationError("Missing required Twilio fields", diagnostics={"receivedPayload": form})

    existing = find_message_by_provider_id(db, message_sid)
    if existing is not None:
        logger.info(f"Duplicate Twilio message {message_sid} ignored")
        return InboundResult(existing, existing.conversation, duplicate=True)

    phone = normalize_phone_number(sender)
    try:
        contact = find_contact_by_phone(db, phone)
        if contact is None:
            contact = Contact(
                name=f"Contact {phone}",
                phone=phone,
                lead_source="sms",
                lead_status="new lead",
            )
            db.add(contact)
            db.flush()
            logger.info(f"Created contact {contact.id} for unknown sender {phone}")

        conversation = get_current_conversation(db, contact.id)
        if conversation is None:
            conversation = Conversation(
                contact_id=contact.id,
                user_id=contact.created_by,
                phone_number=phone,
                conversation_status=ConversationStatus.NOT_STARTED.value,
            )
            db.add(conversation)
            db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("Failed to resolve conversation", diagnostics={"dbError": str(e)}) from e

    plan_transition(conversation.status, ConversationAction.INBOUND_MESSAGE)

    message = Message(
        conversation_id=conversation.id,
        direction=MessageDirection.INBOUND.value,
        source=SMS_SOURCE,
        message_type="text",
        content=body,
        delivery_status=DeliveryStatus.DELIVERED.value,
        provider_message_id=message_sid,
        meta={
            "from": sender,
            "to": form.get("To"),
            "numSegments": form.get("NumSegments"),
            "messageStatus": form.get("MessageStatus"),
        },
    )
    existing = _store_message(db, message, lambda: find_message_by_provider_id(db, message_sid))
    if existing is not None:
        logger.info(f"Duplicate Twilio message {message_sid} lost insert race")
        return InboundResult(existing, existing.conversation, duplicate=True)

    forwarded = False
    if conversation.has_integration_ids and is_automation_permitted(db, contact.id):
        try:
            bot_client.forward_message(contact.id, conversation.botpress_conversation_id, body)
            forwarded = True
        except DeliveryError as e:
            # The message is stored; the bot simply misses this turn.
            logger.error(f"Error forwarding to Botpress: {e.message} ({e.details})")
    else:
        logger.info(
            f"Message {message.id} stored but not forwarded - "
            f"conversation status: {conversation.conversation_status}"
        )
    return InboundResult(message, conversation, forwarded=forwarded)
