"""Per-lesson attendance. Teachers mark only their own lessons; reads and edits go through scope resolution."""

from datetime import date
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.app_logger import get_logger
from schoolportal.core.enums import EntityType, Role
from schoolportal.core.exceptions import ConflictError, ScopeForbiddenError, ValidationFailedError
from schoolportal.core.models import Attendance, Lesson, Student
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, fetch_in_scope, resolve_readable_scope

from .schemas import AttendanceListResponse, AttendanceMark, AttendanceResponse, AttendanceUpdate

logger = get_logger("attendance")


def _to_response(a: Attendance) -> AttendanceResponse:
    return AttendanceResponse.model_validate(a)


async def _find_record(db: AsyncSession, payload: AttendanceMark) -> Optional[Attendance]:
    result = await db.execute(
        select(Attendance).where(
            Attendance.student_id == payload.student_id,
            Attendance.lesson_id == payload.lesson_id,
            Attendance.date == payload.date,
        )
    )
    return result.scalar_one_or_none()


async def mark_attendance(
    db: AsyncSession,
    principal: Principal,
    payload: AttendanceMark,
) -> Tuple[AttendanceResponse, bool]:
    """
    Upsert on (student, lesson, date). Returns (record, created).

    If a concurrent request inserts the same key first, the unique constraint
    fires; the insert is rolled back and the winner's row is updated instead.
    """
    lesson = await db.get(Lesson, payload.lesson_id)
    if lesson is None:
        raise ValidationFailedError("Lesson not found")
    student = await db.get(Student, payload.student_id)
    if student is None:
        raise ValidationFailedError("Student not found")
    if principal.role == Role.TEACHER and lesson.teacher_id != principal.id:
        raise ScopeForbiddenError("Teachers can only mark attendance for their own lessons")
    if student.class_id != lesson.class_id:
        raise ValidationFailedError("Student is not in the lesson's class")

    record = await _find_record(db, payload)
    created = record is None
    if created:
        record = Attendance(
            student_id=payload.student_id,
            lesson_id=payload.lesson_id,
            date=payload.date,
            present=payload.present,
        )
        db.add(record)
    else:
        record.present = payload.present
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        record = await _find_record(db, payload) if created else None
        if record is None:
            raise ConflictError("Attendance record was changed concurrently; retry")
        record.present = payload.present
        created = False
        await db.commit()
    await db.refresh(record)
    logger.debug(
        "Attendance %s for student %s lesson %s on %s",
        "created" if created else "updated",
        record.student_id,
        record.lesson_id,
        record.date,
    )
    return _to_response(record), created


async def list_attendance(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    student_id: Optional[str] = None,
    class_id: Optional[str] = None,
) -> AttendanceListResponse:
    if date_from and date_to and date_to < date_from:
        raise ValidationFailedError("'to' must not be before 'from'")
    filters = []
    if date_from:
        filters.append(Attendance.date >= date_from)
    if date_to:
        filters.append(Attendance.date <= date_to)
    if student_id:
        filters.append(Attendance.student_id == student_id)
    if class_id:
        filters.append(Attendance.student_id.in_(select(Student.id).where(Student.class_id == class_id)))
    scope = await resolve_readable_scope(db, principal, EntityType.ATTENDANCE, all_of(filters))
    stmt = scope.apply(select(Attendance)).order_by(Attendance.date.desc(), Attendance.id)
    rows, pagination = await paginate(db, stmt, page, limit)
    return AttendanceListResponse(data=[_to_response(a) for a in rows], pagination=pagination)


async def get_attendance(db: AsyncSession, principal: Principal, attendance_id: str) -> AttendanceResponse:
    record = await fetch_in_scope(db, principal, EntityType.ATTENDANCE, Attendance, attendance_id)
    return _to_response(record)


async def update_attendance(
    db: AsyncSession,
    principal: Principal,
    attendance_id: str,
    payload: AttendanceUpdate,
) -> AttendanceResponse:
    record = await fetch_in_scope(db, principal, EntityType.ATTENDANCE, Attendance, attendance_id)
    record.present = payload.present
    await db.commit()
    await db.refresh(record)
    return _to_response(record)


async def delete_attendance(db: AsyncSession, principal: Principal, attendance_id: str) -> None:
    record = await fetch_in_scope(db, principal, EntityType.ATTENDANCE, Attendance, attendance_id)
    await db.delete(record)
    await db.commit()
