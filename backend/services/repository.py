"""
Store queries shared by the state machine, the automation gate and the
webhook processors.
"""
from typing import Optional

from sqlalchemy.orm import Session

from backend.errors import NotFoundError
from backend.models.contact import Contact
from backend.models.conversation import Conversation
from backend.models.message import Message
from backend.models.qualification_status import QualificationStatus
from backend.services.phone import phone_search_variants


def get_contact(db: Session, contact_id: str) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id).first()
    if not contact:
        raise NotFoundError("Contact not found")
    return contact


def find_contact_by_phone(db: Session, phone: str) -> Optional[Contact]:
    variants = phone_search_variants(phone)
    if not variants:
        return None
    return (
        db.query(Contact)
        .filter(Contact.phone.in_(variants))
        .order_by(Contact.created_at.asc())
        .first()
    )


def get_current_conversation(
    db: Session, contact_id: str, refresh: bool = False
) -> Optional[Conversation]:
    """
    Return the contact's current conversation: last-created wins.

    Older rows are history and are never considered by the state machine.
    With ``refresh`` the row is re-read even if the session already holds it.
    """
    query = db.query(Conversation).filter(Conversation.contact_id == contact_id)
    if refresh:
        query = query.populate_existing()
    return query.order_by(Conversation.created_at.desc(), Conversation.id.desc()).first()


def get_conversation(db: Session, conversation_id: str) -> Optional[Conversation]:
    return db.query(Conversation).filter(Conversation.id == conversation_id).first()


def recent_conversations(db: Session, limit: int = 5) -> list[dict]:
    rows = (
        db.query(Conversation)
        .order_by(Conversation.created_at.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": row.id,
            "created_at": row.created_at.isoformat() if row.created_at else None,
            "botpress_conversation_id": row.botpress_conversation_id,
        }
        for row in rows
    ]


def get_qualification_status(
    db: Session, contact_id: str, refresh: bool = False
) -> Optional[QualificationStatus]:
    query = db.query(QualificationStatus).filter(QualificationStatus.contact_id == contact_id)
    if refresh:
        query = query.populate_existing()
    return query.first()


def find_message_by_external_id(db: Session, external_id: str) -> Optional[Message]:
    return db.query(Message).filter(Message.external_message_id == external_id).first()


def find_message_by_provider_id(db: Session, provider_id: str) -> Optional[Message]:
    return db.query(Message).filter(Message.provider_message_id == provider_id).first()
