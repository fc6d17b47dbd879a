from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import Gender, StudentStatus


class StudentCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    student_code: Optional[str] = Field(None, max_length=30, description="Auto-assigned (STU-XXXXXXX) when blank")
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    guardian_name: Optional[str] = Field(None, max_length=255)
    guardian_phone: Optional[str] = Field(None, max_length=50)
    status: StudentStatus = StudentStatus.ACTIVE
    notes: Optional[str] = None


class StudentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: Optional[str] = Field(None, min_length=1, max_length=120)
    last_name: Optional[str] = Field(None, min_length=1, max_length=120)
    student_code: Optional[str] = Field(None, min_length=1, max_length=30)
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    guardian_name: Optional[str] = Field(None, max_length=255)
    guardian_phone: Optional[str] = Field(None, max_length=50)
    status: Optional[StudentStatus] = None
    notes: Optional[str] = None


class StudentRef(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    student_code: str

    class Config:
        from_attributes = True


class StudentResponse(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    student_code: str
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
