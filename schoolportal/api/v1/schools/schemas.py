from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from schoolportal.core.pagination import Pagination


class SchoolCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=255)
    schooltype: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    address: str = Field(..., min_length=1, max_length=500)
    logo: Optional[str] = Field(None, max_length=500, description="URL of an already uploaded image")


class SchoolUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=255)
    schooltype: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    logo: Optional[str] = Field(None, max_length=500)


class SchoolResponse(BaseModel):
    id: str
    name: str
    subtitle: Optional[str] = None
    schooltype: Optional[str] = None
    email: str
    phone: Optional[str] = None
    address: str
    logo: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SchoolListResponse(BaseModel):
    data: List[SchoolResponse]
    pagination: Pagination
