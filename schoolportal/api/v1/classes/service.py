from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ConflictError, ValidationFailedError
from schoolportal.core.models import SchoolClass, Student, Teacher
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, fetch_in_scope, resolve_readable_scope

from .schemas import ClassCreate, ClassListResponse, ClassResponse, ClassUpdate


def _class_to_response(c: SchoolClass) -> ClassResponse:
    return ClassResponse.model_validate(c)


async def _ensure_form_master(db: AsyncSession, teacher_id: Optional[str]) -> None:
    if teacher_id is not None and await db.get(Teacher, teacher_id) is None:
        raise ValidationFailedError("Form master not found")


async def create_class(db: AsyncSession, payload: ClassCreate) -> ClassResponse:
    await _ensure_form_master(db, payload.form_master_id)
    try:
        obj = SchoolClass(
            name=payload.name.strip(),
            category=payload.category,
            level=payload.level,
            capacity=payload.capacity,
            form_master_id=payload.form_master_id,
        )
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
        return _class_to_response(obj)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Class name already exists")


async def list_classes(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    search: Optional[str] = None,
    level: Optional[str] = None,
) -> ClassListResponse:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(
            or_(
                SchoolClass.name.ilike(pattern),
                SchoolClass.category.ilike(pattern),
                SchoolClass.level.ilike(pattern),
            )
        )
    if level:
        filters.append(SchoolClass.level == level)
    scope = await resolve_readable_scope(db, principal, EntityType.CLASS, all_of(filters))
    stmt = scope.apply(select(SchoolClass)).order_by(SchoolClass.name)
    rows, pagination = await paginate(db, stmt, page, limit)
    return ClassListResponse(data=[_class_to_response(c) for c in rows], pagination=pagination)


async def get_class(db: AsyncSession, principal: Principal, class_id: str) -> ClassResponse:
    obj = await fetch_in_scope(db, principal, EntityType.CLASS, SchoolClass, class_id)
    return _class_to_response(obj)


async def update_class(
    db: AsyncSession,
    principal: Principal,
    class_id: str,
    payload: ClassUpdate,
) -> ClassResponse:
    obj = await fetch_in_scope(db, principal, EntityType.CLASS, SchoolClass, class_id)
    if payload.name is not None:
        obj.name = payload.name.strip()
    if payload.category is not None:
        obj.category = payload.category
    if payload.level is not None:
        obj.level = payload.level
    if payload.capacity is not None:
        obj.capacity = payload.capacity
    if payload.form_master_id is not None:
        await _ensure_form_master(db, payload.form_master_id)
        obj.form_master_id = payload.form_master_id
    try:
        await db.commit()
        await db.refresh(obj)
        return _class_to_response(obj)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Class name already exists")


async def delete_class(db: AsyncSession, principal: Principal, class_id: str) -> None:
    obj = await fetch_in_scope(db, principal, EntityType.CLASS, SchoolClass, class_id)
    used = await db.execute(select(Student.id).where(Student.class_id == class_id).limit(1))
    if used.scalar_one_or_none() is not None:
        raise ValidationFailedError("Cannot delete class: it has students")
    await db.delete(obj)
    await db.commit()
