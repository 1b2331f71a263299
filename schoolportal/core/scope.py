"""
Access scope resolution: which rows of an entity a principal may read, update or delete.

Rule table (staff = super, admin, management):

    Student       staff: all | teacher: class in taught classes | student: self | parent: own children
    Class         staff: all | teacher: taught classes or form master | student: own class | parent: children's classes
    Subject       staff: all | teacher: subjects listing them | student/parent: subjects with a lesson in the class(es)
    Attendance    staff: all | teacher: own lessons | student: own rows | parent: children's rows
    Announcement, Event
                  staff: all | teacher/student/parent: their class(es) plus school-wide (class_id null)
    Term, School, Administration, Teacher
                  readable by every recognized role

Unknown roles and failed relationship lookups resolve to an empty-result filter.
The returned filter is always ANDed with the caller's own filter, so it can only narrow it.
"""

from typing import Any, Awaitable, Callable, List, Optional

from sqlalchemy import ColumnElement, Select, and_, false, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.app_logger import get_logger
from schoolportal.core.enums import STAFF_ROLES, EntityType, Role
from schoolportal.core.exceptions import NotFoundError, ScopeForbiddenError
from schoolportal.core.models import (
    Announcement,
    Attendance,
    Event,
    Lesson,
    SchoolClass,
    Student,
    Subject,
    Teacher,
)
from schoolportal.core.relationships import RelationshipLinks

logger = get_logger("scope")

# Rule result meaning "no rows at all"
DENY = object()

_READABLE_BY_ALL = frozenset(
    {EntityType.TERM, EntityType.SCHOOL, EntityType.ADMINISTRATION, EntityType.TEACHER}
)


class ScopeFilter:
    """Effective filter for one entity type: the role restriction ANDed with the caller's filter."""

    def __init__(
        self,
        entity_type: EntityType,
        restriction: Optional[ColumnElement] = None,
        caller_filter: Optional[ColumnElement] = None,
        empty: bool = False,
    ) -> None:
        self.entity_type = entity_type
        self.restriction = restriction
        self.caller_filter = caller_filter
        self.empty = empty

    @classmethod
    def deny(cls, entity_type: EntityType) -> "ScopeFilter":
        return cls(entity_type, empty=True)

    @property
    def is_empty(self) -> bool:
        return self.empty

    @property
    def is_unrestricted(self) -> bool:
        return not self.empty and self.restriction is None

    @property
    def clause(self) -> Optional[ColumnElement]:
        if self.empty:
            return false()
        parts = [c for c in (self.restriction, self.caller_filter) if c is not None]
        if not parts:
            return None
        return parts[0] if len(parts) == 1 else and_(*parts)

    def apply(self, stmt: Select) -> Select:
        clause = self.clause
        return stmt if clause is None else stmt.where(clause)

    def __repr__(self) -> str:
        if self.empty:
            return f"ScopeFilter({self.entity_type.value}, empty)"
        return f"ScopeFilter({self.entity_type.value}, {self.clause})"


Rule = Callable[[Principal, RelationshipLinks], Awaitable[Any]]


async def _student_scope(principal: Principal, links: RelationshipLinks) -> Any:
    if principal.role == Role.TEACHER:
        return Student.class_id.in_(sorted(await links.taught_class_ids()))
    if principal.role == Role.STUDENT:
        return Student.id == principal.id
    if principal.role == Role.PARENT:
        return Student.id.in_(sorted(await links.children_ids()))
    return DENY


async def _class_scope(principal: Principal, links: RelationshipLinks) -> Any:
    if principal.role == Role.TEACHER:
        return or_(
            SchoolClass.id.in_(sorted(await links.taught_class_ids())),
            SchoolClass.form_master_id == principal.id,
        )
    if principal.role == Role.STUDENT:
        class_id = await links.own_class_id()
        return DENY if class_id is None else SchoolClass.id == class_id
    if principal.role == Role.PARENT:
        return SchoolClass.id.in_(sorted(await links.children_class_ids()))
    return DENY


async def _subject_scope(principal: Principal, links: RelationshipLinks) -> Any:
    if principal.role == Role.TEACHER:
        return Subject.teachers.any(Teacher.id == principal.id)
    if principal.role == Role.STUDENT:
        class_id = await links.own_class_id()
        if class_id is None:
            return DENY
        return Subject.id.in_(select(Lesson.subject_id).where(Lesson.class_id == class_id))
    if principal.role == Role.PARENT:
        class_ids = sorted(await links.children_class_ids())
        return Subject.id.in_(select(Lesson.subject_id).where(Lesson.class_id.in_(class_ids)))
    return DENY


async def _attendance_scope(principal: Principal, links: RelationshipLinks) -> Any:
    if principal.role == Role.TEACHER:
        return Attendance.lesson_id.in_(select(Lesson.id).where(Lesson.teacher_id == principal.id))
    if principal.role == Role.STUDENT:
        return Attendance.student_id == principal.id
    if principal.role == Role.PARENT:
        return Attendance.student_id.in_(select(Student.id).where(Student.parent_id == principal.id))
    return DENY


def _class_or_school_wide(model) -> Rule:
    """Rows for the principal's class(es) plus rows with no class (school-wide)."""

    async def _rule(principal: Principal, links: RelationshipLinks) -> Any:
        if principal.role == Role.TEACHER:
            class_ids = sorted(await links.taught_class_ids())
        elif principal.role == Role.STUDENT:
            class_id = await links.own_class_id()
            if class_id is None:
                return DENY
            class_ids = [class_id]
        elif principal.role == Role.PARENT:
            class_ids = sorted(await links.children_class_ids())
        else:
            return DENY
        return or_(model.class_id.in_(class_ids), model.class_id.is_(None))

    return _rule


_RULES = {
    EntityType.STUDENT: _student_scope,
    EntityType.CLASS: _class_scope,
    EntityType.SUBJECT: _subject_scope,
    EntityType.ATTENDANCE: _attendance_scope,
    EntityType.ANNOUNCEMENT: _class_or_school_wide(Announcement),
    EntityType.EVENT: _class_or_school_wide(Event),
}


async def resolve_scope(
    db: AsyncSession,
    principal: Principal,
    entity_type: EntityType,
    caller_filter: Optional[ColumnElement] = None,
    links: Optional[RelationshipLinks] = None,
) -> ScopeFilter:
    """Build the effective filter for principal on entity_type. Never broader than caller_filter."""
    if principal.role is None:
        logger.debug("Denying %s scope: principal %s has no recognized role", entity_type.value, principal.id)
        return ScopeFilter.deny(entity_type)

    if principal.role in STAFF_ROLES or entity_type in _READABLE_BY_ALL:
        return ScopeFilter(entity_type, caller_filter=caller_filter)

    rule = _RULES.get(entity_type)
    if rule is None:
        return ScopeFilter.deny(entity_type)

    if links is None:
        links = RelationshipLinks(db, principal)
    try:
        restriction = await rule(principal, links)
    except SQLAlchemyError:
        logger.warning(
            "Relationship lookup failed for %s %s; denying %s scope",
            principal.role.value,
            principal.id,
            entity_type.value,
            exc_info=True,
        )
        return ScopeFilter.deny(entity_type)

    if restriction is DENY:
        logger.info(
            "No relationship rows for %s %s; denying %s scope",
            principal.role.value,
            principal.id,
            entity_type.value,
        )
        return ScopeFilter.deny(entity_type)
    return ScopeFilter(entity_type, restriction=restriction, caller_filter=caller_filter)


async def fetch_in_scope(
    db: AsyncSession,
    principal: Principal,
    entity_type: EntityType,
    model,
    obj_id: str,
    *options,
):
    """
    Load one row through the principal's scope.
    Missing row -> NotFoundError; row outside the scope -> ScopeForbiddenError.
    """
    scope = await resolve_scope(db, principal, entity_type, model.id == obj_id)
    stmt = scope.apply(select(model))
    if options:
        stmt = stmt.options(*options)
    result = await db.execute(stmt)
    obj = result.scalar_one_or_none()
    if obj is not None:
        return obj

    exists = await db.execute(select(model.id).where(model.id == obj_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError(f"{entity_type.value.capitalize()} not found")
    raise ScopeForbiddenError(f"Not allowed to access this {entity_type.value}")


async def resolve_readable_scope(
    db: AsyncSession,
    principal: Principal,
    entity_type: EntityType,
    caller_filter: Optional[ColumnElement] = None,
) -> ScopeFilter:
    """resolve_scope for list endpoints: an empty scope is rejected instead of queried."""
    scope = await resolve_scope(db, principal, entity_type, caller_filter)
    if scope.is_empty:
        raise ScopeForbiddenError(f"Not allowed to read {entity_type.value} records")
    return scope


def all_of(clauses: List[ColumnElement]) -> Optional[ColumnElement]:
    """AND together caller-supplied filters; None when there are none."""
    if not clauses:
        return None
    return clauses[0] if len(clauses) == 1 else and_(*clauses)


async def authorize_class_target(
    db: AsyncSession,
    principal: Principal,
    class_id: Optional[str],
    links: Optional[RelationshipLinks] = None,
) -> None:
    """Teachers may only post to classes they teach (or school-wide). Staff may post anywhere."""
    if principal.role != Role.TEACHER or class_id is None:
        return
    if links is None:
        links = RelationshipLinks(db, principal)
    if class_id not in await links.taught_class_ids():
        raise ScopeForbiddenError("Teachers can only post to classes they teach")
