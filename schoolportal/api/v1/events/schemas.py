from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from schoolportal.core.pagination import Pagination


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    start_time: datetime
    end_time: datetime
    class_id: Optional[str] = Field(None, description="Leave empty for a school-wide event")


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    class_id: Optional[str] = None


class EventResponse(BaseModel):
    id: str
    title: str
    description: str
    start_time: datetime
    end_time: datetime
    class_id: Optional[str] = None

    class Config:
        from_attributes = True


class EventListResponse(BaseModel):
    data: List[EventResponse]
    pagination: Pagination
