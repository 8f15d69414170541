import uuid
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from backend.database import Base
from datetime import datetime


class ConversationStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=False)
    user_id = Column(String(36), nullable=True)
    phone_number = Column(String(20), nullable=True)

    conversation_status = Column(
        String(20), nullable=False, default=ConversationStatus.NOT_STARTED.value
    )
    automation_pause_reason = Column(String(100), nullable=True)  # only set while paused

    # Correlation ids in the bot platform, both required to resume
    botpress_conversation_id = Column(String(100), nullable=True)
    botpress_user_id = Column(String(100), nullable=True)

    last_outreach_attempt = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    contact = relationship("Contact", back_populates="conversations")
    messages = relationship("Message", back_populates="conversation")

    __table_args__ = (
        Index("ix_conversations_contact_created", "contact_id", "created_at"),
        # At most one live (non-ended) conversation per contact
        Index(
            "uq_conversations_live_contact",
            "contact_id",
            unique=True,
            sqlite_where=text("conversation_status != 'ended'"),
            postgresql_where=text("conversation_status != 'ended'"),
        ),
    )

    @property
    def status(self) -> ConversationStatus:
        return ConversationStatus(self.conversation_status)

    @property
    def has_integration_ids(self) -> bool:
        return bool(self.botpress_conversation_id and self.botpress_user_id)
