from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from schoolportal.core.enums import TermName, TermStatus
from schoolportal.core.pagination import Pagination


class TermCreate(BaseModel):
    """Create a term. The new term always becomes the Active one."""

    session: str = Field(..., min_length=1, max_length=20, description="e.g. 2024/2025")
    term: TermName
    start: date = Field(..., description="First day of term")
    end: date = Field(..., description="Last day of term (must be after start)")
    nextterm: date = Field(..., description="First day of the following term")
    daysopen: Optional[int] = Field(None, ge=1, description="Defaults to the number of days from start to end")


class TermUpdate(BaseModel):
    """Partial update. status=Active makes this the only Active term."""

    session: Optional[str] = Field(None, min_length=1, max_length=20)
    term: Optional[TermName] = None
    start: Optional[date] = None
    end: Optional[date] = None
    nextterm: Optional[date] = None
    daysopen: Optional[int] = Field(None, ge=1)
    status: Optional[TermStatus] = None


class TermResponse(BaseModel):
    id: str
    session: str
    term: TermName
    start: date
    end: date
    nextterm: date
    daysopen: int
    status: TermStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TermListResponse(BaseModel):
    data: List[TermResponse]
    pagination: Pagination


class TermDeleteResponse(BaseModel):
    message: str
    promoted_term_id: Optional[str] = None
