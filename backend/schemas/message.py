from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class MessageOut(BaseModel):
    id: str
    conversation_id: str
    direction: str
    source: str
    message_type: str
    content: str
    delivery_status: str
    external_message_id: Optional[str] = None
    provider_message_id: Optional[str] = None
    metadata: dict = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
