from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.dependencies import get_current_principal
from schoolportal.auth.rbac import require_write
from schoolportal.auth.schemas import Principal
from schoolportal.core.config import settings
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ServiceError
from schoolportal.db.session import get_db

from .schemas import TeacherCreate, TeacherListResponse, TeacherResponse, TeacherUpdate
from . import service

router = APIRouter(prefix="/api/v1/teachers", tags=["teachers"])


@router.post(
    "",
    response_model=TeacherResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_write(EntityType.TEACHER))],
)
async def create_teacher(
    payload: TeacherCreate,
    db: AsyncSession = Depends(get_db),
) -> TeacherResponse:
    try:
        return await service.create_teacher(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=TeacherListResponse)
async def list_teachers(
    search: Optional[str] = Query(None),
    school_id: Optional[str] = Query(None, alias="schoolid"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TeacherListResponse:
    try:
        return await service.list_teachers(db, principal, page, limit, search=search, school_id=school_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{teacher_id}", response_model=TeacherResponse)
async def get_teacher(
    teacher_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TeacherResponse:
    try:
        return await service.get_teacher(db, principal, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{teacher_id}", response_model=TeacherResponse)
async def update_teacher(
    teacher_id: str,
    payload: TeacherUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.TEACHER)),
) -> TeacherResponse:
    try:
        return await service.update_teacher(db, principal, teacher_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_teacher(
    teacher_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.TEACHER)),
) -> None:
    try:
        await service.delete_teacher(db, principal, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
