from typing import List, Optional

from pydantic import BaseModel, Field

from schoolportal.core.pagination import Pagination


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    school_id: str
    teacher_ids: List[str] = Field(default_factory=list, description="Teachers qualified to teach this subject")


class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    teacher_ids: Optional[List[str]] = Field(None, description="Replaces the current teacher list")


class SubjectResponse(BaseModel):
    id: str
    name: str
    category: str
    school_id: str
    teacher_ids: List[str] = []


class SubjectListResponse(BaseModel):
    data: List[SubjectResponse]
    pagination: Pagination
