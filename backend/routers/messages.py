from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from backend.database import get_db
from backend.errors import NotFoundError
from backend.models.message import Message
from backend.schemas.message import MessageOut

router = APIRouter()


@router.get("", response_model=list[MessageOut])
def list_messages(
    conversation_id: Optional[str] = None,
    direction: Optional[str] = None,
    delivery_status: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    query = db.query(Message)
    if conversation_id:
        query = query.filter(Message.conversation_id == conversation_id)
    if direction:
        query = query.filter(Message.direction == direction)
    if delivery_status:
        query = query.filter(Message.delivery_status == delivery_status)

    messages = (
        query.order_by(Message.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return messages


@router.get("/{message_id}", response_model=MessageOut)
def get_message(message_id: str, db: Session = Depends(get_db)):
    message = db.query(Message).filter(Message.id == message_id).first()
    if not message:
        raise NotFoundError("Message not found")
    return message
