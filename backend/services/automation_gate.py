"""
Automation gate: the per-contact automation flag and its link to the
conversation pause state.

is_automation_permitted() is the single check an automated sender makes
before dispatching. It reads both inputs fresh on every call.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from backend.models.contact import Contact
from backend.models.conversation import ConversationStatus
from backend.models.qualification_status import QualificationStatus
from backend.services.dual_write import commit_dual_write, commit_or_raise
from backend.services.repository import (
    get_contact,
    get_current_conversation,
    get_qualification_status,
)
from backend.services.transitions import ConversationAction, Transition, plan_transition

logger = logging.getLogger("leadline")

AUTOMATION_DISABLED_REASON = "automation_disabled"


class AutomationSetting(str, Enum):
    UNSET = "unset"  # no qualification_status row yet
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def of(cls, row: Optional[QualificationStatus]) -> "AutomationSetting":
        if row is None:
            return cls.UNSET
        return cls.ENABLED if row.automation_enabled else cls.DISABLED

    @property
    def permits(self) -> bool:
        return self is AutomationSetting.ENABLED


@dataclass
class AutomationStatus:
    contact_id: str
    setting: AutomationSetting
    qualification_status: Optional[QualificationStatus] = None

    @property
    def automation_enabled(self) -> bool:
        return self.setting.permits


def write_automation_flag(db: Session, contact: Contact, enabled: bool) -> QualificationStatus:
    """Upsert the contact's qualification_status row (flushed on commit)."""
    row = get_qualification_status(db, contact.id)
    if row is None:
        row = QualificationStatus(contact_id=contact.id)
        db.add(row)
    row.automation_enabled = enabled
    row.updated_by = contact.created_by
    row.updated_at = datetime.utcnow()
    return row


def cascade_automation_disabled(db: Session, contact_id: str) -> Optional[Transition]:
    """Pause the current conversation if it is active. Other states are left alone."""
    conversation = get_current_conversation(db, contact_id)
    if conversation is None:
        return None
    transition = plan_transition(conversation.status, ConversationAction.AUTOMATION_DISABLED)
    if transition.changed:
        conversation.conversation_status = transition.target.value
        conversation.automation_pause_reason = AUTOMATION_DISABLED_REASON
        logger.info(
            f"Conversation {conversation.id} paused: automation disabled for contact {contact_id}"
        )
    return transition


def set_automation_enabled(
    db: Session, contact_id: str, enabled: bool, reason: Optional[str] = None
) -> AutomationStatus:
    """
    Turn automation on or off for a contact.

    Disabling also pauses an active conversation (reason "automation_disabled").
    Enabling never resumes a paused conversation; that is an explicit resume.
    """
    contact = get_contact(db, contact_id)
    if reason:
        logger.info(
            f"Automation {'enabled' if enabled else 'disabled'} for contact {contact_id}: {reason}"
        )

    row = write_automation_flag(db, contact, enabled)
    if enabled:
        commit_or_raise(db, "Failed to update automation status")
    else:
        commit_dual_write(
            db,
            lambda: cascade_automation_disabled(db, contact.id),
            failure_message="Failed to update automation status",
            secondary_label="conversation pause after automation disable",
        )

    logger.info(
        f"Successfully {'enabled' if enabled else 'disabled'} automation for contact {contact_id}"
    )
    return AutomationStatus(
        contact_id=contact.id,
        setting=AutomationSetting.of(row),
        qualification_status=row,
    )


def get_automation_status(db: Session, contact_id: str) -> AutomationStatus:
    """Current flag for a contact; no row means disabled."""
    row = get_qualification_status(db, contact_id)
    return AutomationStatus(
        contact_id=contact_id,
        setting=AutomationSetting.of(row),
        qualification_status=row,
    )


def is_automation_permitted(db: Session, contact_id: str) -> bool:
    """True only when automation is enabled AND the current conversation is active."""
    setting = AutomationSetting.of(get_qualification_status(db, contact_id, refresh=True))
    if not setting.permits:
        return False
    conversation = get_current_conversation(db, contact_id, refresh=True)
    return conversation is not None and conversation.status == ConversationStatus.ACTIVE
