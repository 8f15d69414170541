from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.schemas.conversation import (
    ContactActionRequest,
    EndOut,
    PauseOut,
    PauseRequest,
    ResumeOut,
)
from backend.services.conversation_state import (
    end_conversation,
    pause_conversation,
    resume_conversation,
)

router = APIRouter()


@router.post("/pause-conversation", response_model=PauseOut)
def pause(req: PauseRequest, db: Session = Depends(get_db)):
    result = pause_conversation(db, req.contact_id, req.reason)
    conversation = result.conversation
    return PauseOut(
        message=result.message,
        conversation_id=conversation.id,
        conversation_status=conversation.conversation_status,
        reason=conversation.automation_pause_reason,
    )


@router.post("/resume-conversation", response_model=ResumeOut)
def resume(req: ContactActionRequest, db: Session = Depends(get_db)):
    result = resume_conversation(db, req.contact_id)
    conversation = result.conversation
    return ResumeOut(
        message=result.message,
        conversation_id=conversation.id,
        conversation_status=conversation.conversation_status,
        botpress_conversation_id=conversation.botpress_conversation_id,
        botpress_user_id=conversation.botpress_user_id,
    )


@router.post("/end-conversation", response_model=EndOut)
def end(req: ContactActionRequest, db: Session = Depends(get_db)):
    result = end_conversation(db, req.contact_id)
    conversation = result.conversation
    return EndOut(
        message=result.message,
        conversation_id=conversation.id,
        conversation_status=conversation.conversation_status,
        ended_at=conversation.ended_at,
    )
