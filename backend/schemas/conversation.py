from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class PauseRequest(BaseModel):
    contact_id: str = Field(alias="contactId", min_length=1)
    reason: Optional[str] = None


class ContactActionRequest(BaseModel):
    contact_id: str = Field(alias="contactId", min_length=1)


class LifecycleOut(BaseModel):
    success: bool = True
    message: str
    conversation_id: str = Field(alias="conversationId")
    conversation_status: str = Field(alias="conversationStatus")

    class Config:
        populate_by_name = True


class PauseOut(LifecycleOut):
    reason: Optional[str] = None


class ResumeOut(LifecycleOut):
    botpress_conversation_id: Optional[str] = Field(
        default=None, alias="botpressConversationId"
    )
    botpress_user_id: Optional[str] = Field(default=None, alias="botpressUserId")


class EndOut(LifecycleOut):
    ended_at: Optional[datetime] = Field(default=None, alias="endedAt")


class ConversationSnapshot(BaseModel):
    id: str
    conversation_status: str
    botpress_conversation_id: Optional[str] = None
    botpress_user_id: Optional[str] = None
    last_outreach_attempt: Optional[datetime] = None
    automation_pause_reason: Optional[str] = None
    ended_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConversationStatusOut(BaseModel):
    contact_id: str = Field(alias="contactId")
    conversation_status: str
    conversation: Optional[ConversationSnapshot] = None
    allowed_actions: list[str] = []

    class Config:
        populate_by_name = True
