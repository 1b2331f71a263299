from typing import List, Optional

from pydantic import BaseModel, Field

from schoolportal.api.v1.announcements.schemas import AnnouncementResponse
from schoolportal.api.v1.events.schemas import EventResponse
from schoolportal.api.v1.terms.schemas import TermResponse
from schoolportal.core.enums import Role


class DashboardCounts(BaseModel):
    """Row counts inside the caller's scope."""

    students: int = 0
    teachers: int = 0
    classes: int = 0
    subjects: int = 0
    schools: int = 0


class GenderCount(BaseModel):
    gender: Optional[str] = None
    count: int


class AttendanceDay(BaseModel):
    date: str
    day: str = Field(..., description="Short weekday name, e.g. Mon")
    present: int = 0
    absent: int = 0


class AttendanceSummary(BaseModel):
    window_days: int
    present: int = 0
    absent: int = 0
    total: int = 0
    percentage: int = Field(0, description="Present share of total, rounded to a whole percent")
    by_day: List[AttendanceDay] = []


class DashboardStats(BaseModel):
    role: Role
    counts: DashboardCounts
    attendance: AttendanceSummary
    current_term: Optional[TermResponse] = None


class DashboardResponse(DashboardStats):
    new_students: int = Field(0, description="Students created in the last 30 days")
    new_teachers: int = Field(0, description="Teachers created in the last 30 days")
    students_by_gender: List[GenderCount] = []
    recent_announcements: List[AnnouncementResponse] = []
    upcoming_events: List[EventResponse] = []
