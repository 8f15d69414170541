from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from backend.database import get_db
from backend.errors import NotFoundError
from backend.models.contact import Contact
from backend.models.conversation import ConversationStatus
from backend.schemas.automation import (
    AutomationStatusOut,
    AutomationToggleOut,
    AutomationToggleRequest,
    QualificationStatusOut,
)
from backend.schemas.contact import ContactOut
from backend.schemas.conversation import ConversationSnapshot, ConversationStatusOut
from backend.services.automation_gate import get_automation_status, set_automation_enabled
from backend.services.conversation_state import get_conversation_status
from backend.services.phone import phone_search_variants
from backend.services.transitions import allowed_actions

router = APIRouter()


@router.get("", response_model=list[ContactOut])
def list_contacts(
    phone: Optional[str] = None,
    lead_status: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    query = db.query(Contact)
    if phone:
        query = query.filter(Contact.phone.in_(phone_search_variants(phone)))
    if lead_status:
        query = query.filter(Contact.lead_status == lead_status)

    contacts = (
        query.order_by(Contact.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return contacts


@router.get("/{contact_id}", response_model=ContactOut)
def get_contact(contact_id: str, db: Session = Depends(get_db)):
    contact = db.query(Contact).filter(Contact.id == contact_id).first()
    if not contact:
        raise NotFoundError("Contact not found")
    return contact


@router.post("/{contact_id}/automation", response_model=AutomationToggleOut)
def toggle_automation(
    contact_id: str, req: AutomationToggleRequest, db: Session = Depends(get_db)
):
    status = set_automation_enabled(db, contact_id, req.automation_enabled, req.reason)
    verb = "enabled" if req.automation_enabled else "disabled"
    return AutomationToggleOut(
        message=f"Automation {verb} successfully",
        contact_id=status.contact_id,
        automation_enabled=req.automation_enabled,
        qualification_status=QualificationStatusOut.model_validate(status.qualification_status),
    )


@router.get("/{contact_id}/automation", response_model=AutomationStatusOut)
def read_automation(contact_id: str, db: Session = Depends(get_db)):
    status = get_automation_status(db, contact_id)
    row = status.qualification_status
    return AutomationStatusOut(
        contact_id=contact_id,
        automation_enabled=status.automation_enabled,
        automation_setting=status.setting.value,
        qualification_status=QualificationStatusOut.model_validate(row) if row else None,
    )


@router.get("/{contact_id}/conversation-status", response_model=ConversationStatusOut)
def read_conversation_status(contact_id: str, db: Session = Depends(get_db)):
    conversation = get_conversation_status(db, contact_id)
    if conversation is None:
        return ConversationStatusOut(
            contact_id=contact_id,
            conversation_status=ConversationStatus.NOT_STARTED.value,
            conversation=None,
            allowed_actions=allowed_actions(ConversationStatus.NOT_STARTED),
        )
    return ConversationStatusOut(
        contact_id=contact_id,
        conversation_status=conversation.conversation_status,
        conversation=ConversationSnapshot.model_validate(conversation),
        allowed_actions=allowed_actions(conversation.status),
    )
