from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ConflictError, ValidationFailedError
from schoolportal.core.models import School, Teacher
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, fetch_in_scope, resolve_readable_scope

from .schemas import TeacherCreate, TeacherListResponse, TeacherResponse, TeacherUpdate


def _to_response(t: Teacher) -> TeacherResponse:
    return TeacherResponse.model_validate(t)


async def _ensure_school(db: AsyncSession, school_id: Optional[str]) -> None:
    if school_id is not None and await db.get(School, school_id) is None:
        raise ValidationFailedError("School not found")


async def create_teacher(db: AsyncSession, payload: TeacherCreate) -> TeacherResponse:
    await _ensure_school(db, payload.school_id)
    teacher = Teacher(**payload.model_dump())
    try:
        db.add(teacher)
        await db.commit()
        await db.refresh(teacher)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username or email already in use")
    return _to_response(teacher)


async def list_teachers(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    search: Optional[str] = None,
    school_id: Optional[str] = None,
) -> TeacherListResponse:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(
            or_(
                Teacher.firstname.ilike(pattern),
                Teacher.surname.ilike(pattern),
                Teacher.email.ilike(pattern),
                Teacher.username.ilike(pattern),
            )
        )
    if school_id:
        filters.append(Teacher.school_id == school_id)
    scope = await resolve_readable_scope(db, principal, EntityType.TEACHER, all_of(filters))
    stmt = scope.apply(select(Teacher)).order_by(Teacher.surname, Teacher.firstname)
    rows, pagination = await paginate(db, stmt, page, limit)
    return TeacherListResponse(data=[_to_response(t) for t in rows], pagination=pagination)


async def get_teacher(db: AsyncSession, principal: Principal, teacher_id: str) -> TeacherResponse:
    return _to_response(await fetch_in_scope(db, principal, EntityType.TEACHER, Teacher, teacher_id))


async def update_teacher(
    db: AsyncSession,
    principal: Principal,
    teacher_id: str,
    payload: TeacherUpdate,
) -> TeacherResponse:
    teacher = await fetch_in_scope(db, principal, EntityType.TEACHER, Teacher, teacher_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    await _ensure_school(db, data.get("school_id"))
    for key, value in data.items():
        setattr(teacher, key, value)
    try:
        await db.commit()
        await db.refresh(teacher)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already in use")
    return _to_response(teacher)


async def delete_teacher(db: AsyncSession, principal: Principal, teacher_id: str) -> None:
    teacher = await fetch_in_scope(db, principal, EntityType.TEACHER, Teacher, teacher_id)
    await db.delete(teacher)
    await db.commit()
