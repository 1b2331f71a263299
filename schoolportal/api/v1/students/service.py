from datetime import date
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.app_logger import get_logger
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ConflictError, ValidationFailedError
from schoolportal.core.models import Parent, School, SchoolClass, Student
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, fetch_in_scope, resolve_readable_scope

from .schemas import StudentCreate, StudentListResponse, StudentResponse, StudentUpdate

logger = get_logger("students")


def _to_response(s: Student) -> StudentResponse:
    return StudentResponse.model_validate(s)


async def _ensure_refs(
    db: AsyncSession,
    class_id: Optional[str] = None,
    parent_id: Optional[str] = None,
    school_id: Optional[str] = None,
) -> None:
    if class_id is not None and await db.get(SchoolClass, class_id) is None:
        raise ValidationFailedError("Class not found")
    if parent_id is not None and await db.get(Parent, parent_id) is None:
        raise ValidationFailedError("Parent not found")
    if school_id is not None and await db.get(School, school_id) is None:
        raise ValidationFailedError("School not found")


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentResponse:
    await _ensure_refs(db, payload.class_id, payload.parent_id, payload.school_id)
    data = payload.model_dump()
    if data.get("gender") is not None:
        data["gender"] = data["gender"].value
    if data.get("admissiondate") is None:
        data["admissiondate"] = date.today()
    student = Student(**data)
    try:
        db.add(student)
        await db.commit()
        await db.refresh(student)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username, admission number or email already in use")
    logger.info("Created student %s in class %s", student.id, student.class_id)
    return _to_response(student)


async def list_students(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    search: Optional[str] = None,
    class_id: Optional[str] = None,
) -> StudentListResponse:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(
            or_(
                Student.firstname.ilike(pattern),
                Student.surname.ilike(pattern),
                Student.email.ilike(pattern),
                Student.admissionnumber.ilike(pattern),
            )
        )
    if class_id:
        filters.append(Student.class_id == class_id)
    scope = await resolve_readable_scope(db, principal, EntityType.STUDENT, all_of(filters))
    stmt = scope.apply(select(Student)).order_by(Student.surname, Student.firstname)
    rows, pagination = await paginate(db, stmt, page, limit)
    return StudentListResponse(data=[_to_response(s) for s in rows], pagination=pagination)


async def get_student(db: AsyncSession, principal: Principal, student_id: str) -> StudentResponse:
    student = await fetch_in_scope(db, principal, EntityType.STUDENT, Student, student_id)
    return _to_response(student)


async def update_student(
    db: AsyncSession,
    principal: Principal,
    student_id: str,
    payload: StudentUpdate,
) -> StudentResponse:
    student = await fetch_in_scope(db, principal, EntityType.STUDENT, Student, student_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    await _ensure_refs(db, data.get("class_id"), data.get("parent_id"))
    if "gender" in data:
        data["gender"] = data["gender"].value
    for key, value in data.items():
        setattr(student, key, value)
    try:
        await db.commit()
        await db.refresh(student)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already in use")
    return _to_response(student)


async def delete_student(db: AsyncSession, principal: Principal, student_id: str) -> None:
    student = await fetch_in_scope(db, principal, EntityType.STUDENT, Student, student_id)
    await db.delete(student)
    await db.commit()
    logger.info("Deleted student %s", student_id)
