"""
Conversation lifecycle operations: pause, resume, end and status reads.

Each operation works on the contact's current conversation (last-created
wins), validates the move against the transition table before touching
anything, then persists. Pause and resume also flip the contact's
automation flag as a secondary write (see services/dual_write.py).
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from backend.errors import MissingIntegrationDataError, NotFoundError
from backend.models.conversation import Conversation
from backend.services.automation_gate import write_automation_flag
from backend.services.dual_write import commit_dual_write, commit_or_raise
from backend.services.repository import get_contact, get_current_conversation
from backend.services.transitions import ConversationAction, plan_transition

logger = logging.getLogger("leadline")

DEFAULT_PAUSE_REASON = "user_paused"


@dataclass
class LifecycleResult:
    conversation: Conversation
    changed: bool
    message: str


def _load_current(db: Session, contact_id: str):
    contact = get_contact(db, contact_id)
    conversation = get_current_conversation(db, contact.id)
    if conversation is None:
        raise NotFoundError("No conversation found for this contact")
    return contact, conversation


def pause_conversation(
    db: Session, contact_id: str, reason: Optional[str] = None
) -> LifecycleResult:
    contact, conversation = _load_current(db, contact_id)
    transition = plan_transition(conversation.status, ConversationAction.PAUSE)
    if not transition.changed:
        return LifecycleResult(conversation, False, "Conversation is already paused")

    conversation.conversation_status = transition.target.value
    conversation.automation_pause_reason = reason or DEFAULT_PAUSE_REASON
    commit_dual_write(
        db,
        lambda: write_automation_flag(db, contact, False),
        failure_message="Failed to pause conversation",
        secondary_label="automation disable after pause",
    )
    logger.info(f"Paused conversation {conversation.id} for contact {contact.id}")
    return LifecycleResult(conversation, True, "Conversation paused successfully")


def resume_conversation(db: Session, contact_id: str) -> LifecycleResult:
    contact, conversation = _load_current(db, contact_id)
    transition = plan_transition(conversation.status, ConversationAction.RESUME)
    if not transition.changed:
        return LifecycleResult(conversation, False, "Conversation is already active")

    if not conversation.has_integration_ids:
        raise MissingIntegrationDataError(
            "Cannot resume conversation: missing Botpress integration data"
        )

    conversation.conversation_status = transition.target.value
    conversation.automation_pause_reason = None
    commit_dual_write(
        db,
        lambda: write_automation_flag(db, contact, True),
        failure_message="Failed to resume conversation",
        secondary_label="automation enable after resume",
    )
    logger.info(f"Resumed conversation {conversation.id} for contact {contact.id}")
    return LifecycleResult(conversation, True, "Conversation resumed successfully")


def end_conversation(db: Session, contact_id: str) -> LifecycleResult:
    """End the current conversation. Automation flag is left as is."""
    contact, conversation = _load_current(db, contact_id)
    transition = plan_transition(conversation.status, ConversationAction.END)
    if not transition.changed:
        return LifecycleResult(conversation, False, "Conversation has already ended")

    conversation.conversation_status = transition.target.value
    conversation.automation_pause_reason = None
    conversation.ended_at = datetime.utcnow()
    commit_or_raise(db, "Failed to end conversation")
    logger.info(f"Ended conversation {conversation.id} for contact {contact.id}")
    return LifecycleResult(conversation, True, "Conversation ended successfully")


def get_conversation_status(db: Session, contact_id: str) -> Optional[Conversation]:
    """Current conversation, or None when the contact has not started one."""
    return get_current_conversation(db, contact_id)
