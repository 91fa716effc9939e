from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AppointmentStatus


class AppointmentCreate(BaseModel):
    title: str = Field(..., min_length=1, examples=["Acompanhamento de carreira"])
    description: Optional[str] = None
    scheduled_at: datetime = Field(..., examples=["2026-11-03T14:00:00Z"])
    duration_minutes: int = Field(default=60, gt=0, le=480)


class AppointmentDecision(BaseModel):
    notes: Optional[str] = None


class ConsultantAssignment(BaseModel):
    consultant_id: UUID
    meeting_url: Optional[str] = None


class AppointmentOut(BaseModel):
    id: UUID
    tenant_id: UUID
    employee_id: UUID
    consultant_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    notes: Optional[str] = None
    meeting_url: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    satisfaction: int = Field(..., ge=1, le=5)
    would_recommend: bool = False
    comments: Optional[str] = None


class FeedbackOut(FeedbackCreate):
    id: UUID
    appointment_id: UUID
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
