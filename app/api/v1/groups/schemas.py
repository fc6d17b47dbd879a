from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.auth.schemas import UserRef


class GroupCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=100, description="Defaults to grade level + section, e.g. '1A'")
    grade_level: int = Field(..., ge=1, le=6)
    section: Optional[str] = Field(None, max_length=20)
    school_year: str = Field(..., min_length=1, max_length=20, description="e.g. 2024-2025")
    tutor_id: Optional[UUID] = None
    description: Optional[str] = None


class GroupUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=100)
    grade_level: Optional[int] = Field(None, ge=1, le=6)
    section: Optional[str] = Field(None, max_length=20)
    school_year: Optional[str] = Field(None, min_length=1, max_length=20)
    tutor_id: Optional[UUID] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class GroupRef(BaseModel):
    id: UUID
    name: str
    grade_level: int
    section: Optional[str] = None
    school_year: str

    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    id: UUID
    name: str
    grade_level: int
    section: Optional[str] = None
    school_year: str
    tutor_id: Optional[UUID] = None
    tutor: Optional[UserRef] = None
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
