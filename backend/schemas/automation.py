from pydantic import BaseModel, Field, StrictBool
from datetime import datetime
from typing import Optional


class AutomationToggleRequest(BaseModel):
    automation_enabled: StrictBool
    reason: Optional[str] = None


class QualificationStatusOut(BaseModel):
    id: int
    contact_id: str
    automation_enabled: bool
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AutomationToggleOut(BaseModel):
    success: bool = True
    message: str
    contact_id: str = Field(alias="contactId")
    automation_enabled: bool
    qualification_status: QualificationStatusOut

    class Config:
        populate_by_name = True


class AutomationStatusOut(BaseModel):
    contact_id: str = Field(alias="contactId")
    automation_enabled: bool
    automation_setting: str  # unset/enabled/disabled
    qualification_status: Optional[QualificationStatusOut] = None

    class Config:
        populate_by_name = True
