"""
Role-scoped dashboard: counts, attendance summary, recent announcements and upcoming events.

Every figure is read through resolve_scope with the caller's own principal, so a
dashboard never reports rows the same caller could not list.
"""

from datetime import date, datetime, timedelta
from typing import Dict, List

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.api.v1.announcements.schemas import AnnouncementResponse
from schoolportal.api.v1.events.schemas import EventResponse
from schoolportal.api.v1.terms.service import get_active_term
from schoolportal.auth.schemas import Principal
from schoolportal.core.app_logger import get_logger
from schoolportal.core.enums import EntityType, Role
from schoolportal.core.exceptions import ScopeForbiddenError
from schoolportal.core.models import Announcement, Attendance, Event, School, SchoolClass, Student, Subject, Teacher
from schoolportal.core.relationships import RelationshipLinks
from schoolportal.core.scope import resolve_scope

from .schemas import (
    AttendanceDay,
    AttendanceSummary,
    DashboardCounts,
    DashboardResponse,
    DashboardStats,
    GenderCount,
)

logger = get_logger("dashboard")

RECENT_LIMIT = 5
NEW_RECORD_DAYS = 30
STUDENT_ATTENDANCE_DAYS = 30
ATTENDANCE_DAYS = 7

_COUNTED = (
    ("students", EntityType.STUDENT, Student),
    ("teachers", EntityType.TEACHER, Teacher),
    ("classes", EntityType.CLASS, SchoolClass),
    ("subjects", EntityType.SUBJECT, Subject),
    ("schools", EntityType.SCHOOL, School),
)


def _require_role(principal: Principal) -> None:
    if principal.role is None:
        raise ScopeForbiddenError("Not allowed to view the dashboard")


async def _scoped_count(
    db: AsyncSession,
    principal: Principal,
    links: RelationshipLinks,
    entity_type: EntityType,
    model,
    caller_filter=None,
) -> int:
    scope = await resolve_scope(db, principal, entity_type, caller_filter, links=links)
    if scope.is_empty:
        return 0
    result = await db.execute(scope.apply(select(func.count(model.id))))
    return result.scalar_one()


async def _counts(db: AsyncSession, principal: Principal, links: RelationshipLinks) -> DashboardCounts:
    values = {}
    for field, entity_type, model in _COUNTED:
        values[field] = await _scoped_count(db, principal, links, entity_type, model)
    return DashboardCounts(**values)


async def _attendance_summary(
    db: AsyncSession, principal: Principal, links: RelationshipLinks, today: date
) -> AttendanceSummary:
    """Present/absent totals and a per-day chart over the role's window, ending today."""
    window = STUDENT_ATTENDANCE_DAYS if principal.role == Role.STUDENT else ATTENDANCE_DAYS
    start = today - timedelta(days=window - 1)
    scope = await resolve_scope(
        db,
        principal,
        EntityType.ATTENDANCE,
        and_(Attendance.date >= start, Attendance.date <= today),
        links=links,
    )
    days: Dict[date, AttendanceDay] = {}
    for offset in range(window):
        d = start + timedelta(days=offset)
        days[d] = AttendanceDay(date=d.isoformat(), day=d.strftime("%a"))

    if not scope.is_empty:
        stmt = scope.apply(
            select(Attendance.date, Attendance.present, func.count(Attendance.id))
        ).group_by(Attendance.date, Attendance.present)
        for day, present, count in (await db.execute(stmt)).all():
            bucket = days.get(day)
            if bucket is None:
                continue
            if present:
                bucket.present += count
            else:
                bucket.absent += count

    present = sum(d.present for d in days.values())
    absent = sum(d.absent for d in days.values())
    total = present + absent
    percentage = int(present * 100 / total + 0.5) if total else 0
    return AttendanceSummary(
        window_days=window,
        present=present,
        absent=absent,
        total=total,
        percentage=percentage,
        by_day=list(days.values()),
    )


async def _students_by_gender(db: AsyncSession, principal: Principal, links: RelationshipLinks) -> List[GenderCount]:
    scope = await resolve_scope(db, principal, EntityType.STUDENT, links=links)
    if scope.is_empty:
        return []
    stmt = scope.apply(select(Student.gender, func.count(Student.id))).group_by(Student.gender).order_by(Student.gender)
    return [GenderCount(gender=gender, count=count) for gender, count in (await db.execute(stmt)).all()]


async def _recent_announcements(
    db: AsyncSession, principal: Principal, links: RelationshipLinks
) -> List[AnnouncementResponse]:
    scope = await resolve_scope(db, principal, EntityType.ANNOUNCEMENT, links=links)
    if scope.is_empty:
        return []
    stmt = scope.apply(select(Announcement)).order_by(Announcement.date.desc(), Announcement.id).limit(RECENT_LIMIT)
    rows = (await db.execute(stmt)).scalars().all()
    return [AnnouncementResponse.model_validate(a) for a in rows]


async def _upcoming_events(
    db: AsyncSession, principal: Principal, links: RelationshipLinks, now: datetime
) -> List[EventResponse]:
    scope = await resolve_scope(db, principal, EntityType.EVENT, Event.start_time >= now, links=links)
    if scope.is_empty:
        return []
    stmt = scope.apply(select(Event)).order_by(Event.start_time, Event.id).limit(RECENT_LIMIT)
    rows = (await db.execute(stmt)).scalars().all()
    return [EventResponse.model_validate(e) for e in rows]


async def get_stats(db: AsyncSession, principal: Principal) -> DashboardStats:
    """Counts and attendance only."""
    _require_role(principal)
    links = RelationshipLinks(db, principal)
    return DashboardStats(
        role=principal.role,
        counts=await _counts(db, principal, links),
        attendance=await _attendance_summary(db, principal, links, date.today()),
        current_term=await get_active_term(db),
    )


async def get_dashboard(db: AsyncSession, principal: Principal) -> DashboardResponse:
    _require_role(principal)
    links = RelationshipLinks(db, principal)
    now = datetime.utcnow()
    since = now - timedelta(days=NEW_RECORD_DAYS)

    response = DashboardResponse(
        role=principal.role,
        counts=await _counts(db, principal, links),
        new_students=await _scoped_count(
            db, principal, links, EntityType.STUDENT, Student, Student.created_at >= since
        ),
        new_teachers=await _scoped_count(
            db, principal, links, EntityType.TEACHER, Teacher, Teacher.created_at >= since
        ),
        students_by_gender=await _students_by_gender(db, principal, links),
        attendance=await _attendance_summary(db, principal, links, date.today()),
        recent_announcements=await _recent_announcements(db, principal, links),
        upcoming_events=await _upcoming_events(db, principal, links, now),
        current_term=await get_active_term(db),
    )
    logger.debug(
        "Dashboard for %s %s: %d students, %d relationship queries",
        principal.role.value,
        principal.id,
        response.counts.students,
        links.queries,
    )
    return response
