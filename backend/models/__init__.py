from backend.models.contact import Contact
from backend.models.conversation import Conversation, ConversationStatus
from backend.models.qualification_status import QualificationStatus
from backend.models.message import Message, MessageDirection, DeliveryStatus

__all__ = [
    "Contact",
    "Conversation",
    "ConversationStatus",
    "QualificationStatus",
    "Message",
    "MessageDirection",
    "DeliveryStatus",
]
