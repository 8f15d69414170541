from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from backend.database import Base
from datetime import datetime


class QualificationStatus(Base):
    __tablename__ = "qualification_status"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact_id = Column(String(36), ForeignKey("contacts.id"), unique=True, nullable=False)
    automation_enabled = Column(Boolean, nullable=False, default=False)
    updated_by = Column(String(36), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contact = relationship("Contact", back_populates="qualification_status")
