from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from schoolportal.core.pagination import Pagination


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    date: Optional[datetime] = None
    class_id: Optional[str] = Field(None, description="Leave empty for a school-wide announcement")


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime] = None
    class_id: Optional[str] = None


class AnnouncementResponse(BaseModel):
    id: str
    title: str
    description: str
    date: datetime
    class_id: Optional[str] = None

    class Config:
        from_attributes = True


class AnnouncementListResponse(BaseModel):
    data: List[AnnouncementResponse]
    pagination: Pagination
