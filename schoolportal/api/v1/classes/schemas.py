from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from schoolportal.core.pagination import Pagination


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    category: str = Field(..., min_length=1, max_length=50)
    level: str = Field(..., min_length=1, max_length=50)
    capacity: Optional[int] = Field(None, ge=1)
    form_master_id: Optional[str] = None


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    level: Optional[str] = Field(None, min_length=1, max_length=50)
    capacity: Optional[int] = Field(None, ge=1)
    form_master_id: Optional[str] = None


class ClassResponse(BaseModel):
    id: str
    name: str
    category: str
    level: str
    capacity: Optional[int] = None
    form_master_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClassListResponse(BaseModel):
    data: List[ClassResponse]
    pagination: Pagination
