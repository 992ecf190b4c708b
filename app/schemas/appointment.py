# app/schemas/appointment.py

from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.core.business import AppointmentStatus


class AppointmentCreate(BaseModel):
    organizer_id: int = Field(..., gt=0, validation_alias=AliasChoices("organizer_id", "user_id"))
    participant_id: int = Field(..., gt=0)
    # Parsed by the booking service so a bad value is reported per field
    start_time: str = Field(..., examples=["2024-01-01T10:00:00Z"], description="RFC 3339 instant with offset")
    end_time: str = Field(..., examples=["2024-01-01T11:00:00Z"], description="RFC 3339 instant with offset")
    description: Optional[str] = None


class AppointmentOut(BaseModel):
    id: int
    organizer_id: int
    participant_id: int
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
