from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import LessonType


class FormationCreate(BaseModel):
    title: str = Field(..., min_length=1, examples=["Gestão do stress"])
    description: Optional[str] = None


class FormationUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class LessonCreate(BaseModel):
    title: str = Field(..., min_length=1)
    lesson_type: LessonType = LessonType.TEXT
    position: Optional[int] = Field(default=None, ge=0)
    content: Optional[str] = None
    video_asset_id: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=0)


class LessonOut(BaseModel):
    id: UUID
    section_id: UUID
    title: str
    lesson_type: LessonType
    position: int
    is_published: bool
    content: Optional[str] = None
    video_asset_id: Optional[str] = None
    duration_seconds: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    position: Optional[int] = Field(default=None, ge=0)


class SectionOut(BaseModel):
    id: UUID
    formation_id: UUID
    title: str
    position: int
    lessons: List[LessonOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class FormationOut(BaseModel):
    id: UUID
    author_id: UUID
    title: str
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    sections: List[SectionOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class FormationAssign(BaseModel):
    account_ids: List[UUID] = Field(..., min_length=1)


class ProgressUpdate(BaseModel):
    progress: int = Field(..., ge=0, le=100)


class EnrollmentOut(BaseModel):
    id: UUID
    account_id: UUID
    formation_id: UUID
    progress: int
    completed_at: Optional[datetime] = None
    assigned_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
