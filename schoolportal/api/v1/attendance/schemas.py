from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from schoolportal.core.pagination import Pagination


class AttendanceMark(BaseModel):
    """Mark one student for one lesson on one day. Re-marking the same triple updates it."""

    student_id: str
    lesson_id: str
    date: date
    present: bool


class AttendanceUpdate(BaseModel):
    present: bool


class AttendanceResponse(BaseModel):
    id: str
    student_id: str
    lesson_id: str
    date: date
    present: bool

    class Config:
        from_attributes = True


class AttendanceListResponse(BaseModel):
    data: List[AttendanceResponse]
    pagination: Pagination
