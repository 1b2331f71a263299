from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from schoolportal.core.pagination import Pagination


class TeacherCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    title: Optional[str] = Field(None, max_length=20)
    firstname: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    othername: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    school_id: Optional[str] = None


class TeacherUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=20)
    firstname: Optional[str] = Field(None, min_length=1, max_length=100)
    surname: Optional[str] = Field(None, min_length=1, max_length=100)
    othername: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    school_id: Optional[str] = None


class TeacherResponse(BaseModel):
    id: str
    username: str
    title: Optional[str] = None
    firstname: str
    surname: str
    othername: Optional[str] = None
    email: str
    phone: Optional[str] = None
    school_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TeacherListResponse(BaseModel):
    data: List[TeacherResponse]
    pagination: Pagination
