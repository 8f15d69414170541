import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship, validates
from backend.database import Base
from backend.services.phone import normalize_phone_number
from datetime import datetime


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False, default="")
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True, index=True)  # digits only, see normalize_phone_number

    lead_source = Column(String(50), default="")
    lead_status = Column(String(50), default="new lead")

    created_by = Column(String(36), nullable=True)
    organization_id = Column(String(36), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    conversations = relationship("Conversation", back_populates="contact")
    qualification_status = relationship(
        "QualificationStatus", back_populates="contact", uselist=False
    )

    @validates("phone")
    def _normalize_phone(self, key, value):
        if value is None:
            return None
        return normalize_phone_number(value)
