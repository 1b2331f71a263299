from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.dependencies import get_current_principal
from schoolportal.auth.rbac import require_write
from schoolportal.auth.schemas import Principal
from schoolportal.core.config import settings
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ServiceError
from schoolportal.db.session import get_db

from .schemas import AttendanceListResponse, AttendanceMark, AttendanceResponse, AttendanceUpdate
from . import service

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.post("", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    payload: AttendanceMark,
    response: Response,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.ATTENDANCE)),
) -> AttendanceResponse:
    """Create or update the record for (student, lesson, date). 201 when created, 200 when updated."""
    try:
        record, created = await service.mark_attendance(db, principal, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not created:
        response.status_code = status.HTTP_200_OK
    return record


@router.get("", response_model=AttendanceListResponse)
async def list_attendance(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    student_id: Optional[str] = Query(None, alias="studentId"),
    class_id: Optional[str] = Query(None, alias="classId"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> AttendanceListResponse:
    try:
        return await service.list_attendance(
            db,
            principal,
            page,
            limit,
            date_from=date_from,
            date_to=date_to,
            student_id=student_id,
            class_id=class_id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{attendance_id}", response_model=AttendanceResponse)
async def get_attendance(
    attendance_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> AttendanceResponse:
    try:
        return await service.get_attendance(db, principal, attendance_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{attendance_id}", response_model=AttendanceResponse)
async def update_attendance(
    attendance_id: str,
    payload: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.ATTENDANCE)),
) -> AttendanceResponse:
    try:
        return await service.update_attendance(db, principal, attendance_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{attendance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(
    attendance_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.ATTENDANCE)),
) -> None:
    try:
        await service.delete_attendance(db, principal, attendance_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
