from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.auth.schemas import UserRef


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    grade_level: Optional[int] = Field(None, ge=1, le=6)
    teacher_id: Optional[UUID] = None


class SubjectUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    grade_level: Optional[int] = Field(None, ge=1, le=6)
    teacher_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class SubjectRef(BaseModel):
    id: UUID
    name: str
    code: str

    class Config:
        from_attributes = True


class SubjectResponse(BaseModel):
    id: UUID
    name: str
    code: str
    description: Optional[str] = None
    grade_level: Optional[int] = None
    teacher_id: Optional[UUID] = None
    teacher: Optional[UserRef] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
