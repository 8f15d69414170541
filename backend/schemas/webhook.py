from pydantic import BaseModel, Field


class BotInboundOut(BaseModel):
    success: bool = True
    message_id: str = Field(alias="messageId")
    conversation_id: str = Field(alias="conversationId")
    duplicate: bool = False

    class Config:
        populate_by_name = True
