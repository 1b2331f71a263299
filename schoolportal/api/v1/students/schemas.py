from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from schoolportal.core.enums import Gender
from schoolportal.core.pagination import Pagination


class StudentCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    admissionnumber: str = Field(..., min_length=1, max_length=50)
    firstname: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    othername: Optional[str] = Field(None, max_length=100)
    birthday: Optional[date] = None
    gender: Optional[Gender] = None
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)
    admissiondate: Optional[date] = None
    class_id: str
    parent_id: str
    school_id: Optional[str] = None


class StudentUpdate(BaseModel):
    firstname: Optional[str] = Field(None, min_length=1, max_length=100)
    surname: Optional[str] = Field(None, min_length=1, max_length=100)
    othername: Optional[str] = Field(None, max_length=100)
    birthday: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)
    class_id: Optional[str] = None
    parent_id: Optional[str] = None


class StudentResponse(BaseModel):
    id: str
    username: str
    admissionnumber: str
    firstname: str
    surname: str
    othername: Optional[str] = None
    birthday: Optional[date] = None
    gender: Optional[Gender] = None
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    admissiondate: date
    class_id: str
    parent_id: str
    school_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StudentListResponse(BaseModel):
    data: List[StudentResponse]
    pagination: Pagination
