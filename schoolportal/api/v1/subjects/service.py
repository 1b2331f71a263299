from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ConflictError, ValidationFailedError
from schoolportal.core.models import Lesson, School, Subject, Teacher
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, fetch_in_scope, resolve_readable_scope

from .schemas import SubjectCreate, SubjectListResponse, SubjectResponse, SubjectUpdate


def _to_response(s: Subject) -> SubjectResponse:
    return SubjectResponse(
        id=s.id,
        name=s.name,
        category=s.category,
        school_id=s.school_id,
        teacher_ids=sorted(t.id for t in s.teachers),
    )


async def _load_teachers(db: AsyncSession, teacher_ids: List[str]) -> List[Teacher]:
    if not teacher_ids:
        return []
    wanted = set(teacher_ids)
    result = await db.execute(select(Teacher).where(Teacher.id.in_(wanted)))
    teachers = list(result.scalars().all())
    if len(teachers) != len(wanted):
        raise ValidationFailedError("One or more teachers not found")
    return teachers


async def _reload(db: AsyncSession, subject_id: str) -> Subject:
    result = await db.execute(
        select(Subject)
        .where(Subject.id == subject_id)
        .options(selectinload(Subject.teachers))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def create_subject(db: AsyncSession, payload: SubjectCreate) -> SubjectResponse:
    if await db.get(School, payload.school_id) is None:
        raise ValidationFailedError("School not found")
    teachers = await _load_teachers(db, payload.teacher_ids)
    subject = Subject(
        name=payload.name.strip(),
        category=payload.category,
        school_id=payload.school_id,
        teachers=teachers,
    )
    db.add(subject)
    await db.commit()
    return _to_response(await _reload(db, subject.id))


async def list_subjects(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    search: Optional[str] = None,
    category: Optional[str] = None,
    school_id: Optional[str] = None,
) -> SubjectListResponse:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Subject.name.ilike(pattern), Subject.category.ilike(pattern)))
    if category:
        filters.append(Subject.category == category)
    if school_id:
        filters.append(Subject.school_id == school_id)
    scope = await resolve_readable_scope(db, principal, EntityType.SUBJECT, all_of(filters))
    stmt = scope.apply(select(Subject)).order_by(Subject.name)
    rows, pagination = await paginate(db, stmt, page, limit, selectinload(Subject.teachers))
    return SubjectListResponse(data=[_to_response(s) for s in rows], pagination=pagination)


async def get_subject(db: AsyncSession, principal: Principal, subject_id: str) -> SubjectResponse:
    subject = await fetch_in_scope(
        db, principal, EntityType.SUBJECT, Subject, subject_id, selectinload(Subject.teachers)
    )
    return _to_response(subject)


async def update_subject(
    db: AsyncSession,
    principal: Principal,
    subject_id: str,
    payload: SubjectUpdate,
) -> SubjectResponse:
    subject = await fetch_in_scope(
        db, principal, EntityType.SUBJECT, Subject, subject_id, selectinload(Subject.teachers)
    )
    if payload.name is not None:
        subject.name = payload.name.strip()
    if payload.category is not None:
        subject.category = payload.category
    if payload.teacher_ids is not None:
        subject.teachers = await _load_teachers(db, payload.teacher_ids)
    await db.commit()
    return _to_response(await _reload(db, subject_id))


async def delete_subject(db: AsyncSession, principal: Principal, subject_id: str) -> None:
    subject = await fetch_in_scope(db, principal, EntityType.SUBJECT, Subject, subject_id)
    used = await db.execute(select(Lesson.id).where(Lesson.subject_id == subject_id).limit(1))
    if used.scalar_one_or_none() is not None:
        raise ValidationFailedError("Cannot delete subject: it has lessons")
    try:
        await db.delete(subject)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Subject is still referenced by other records")
