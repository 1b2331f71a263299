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

from .schemas import SchoolCreate, SchoolListResponse, SchoolResponse, SchoolUpdate
from . import service

router = APIRouter(prefix="/api/v1/schools", tags=["schools"])


@router.post(
    "",
    response_model=SchoolResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_write(EntityType.SCHOOL))],
)
async def create_school(
    payload: SchoolCreate,
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    try:
        return await service.create_school(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=SchoolListResponse)
async def list_schools(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> SchoolListResponse:
    try:
        return await service.list_schools(db, principal, page, limit, search=search)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_school(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> SchoolResponse:
    try:
        return await service.get_school(db, principal, school_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{school_id}", response_model=SchoolResponse)
async def update_school(
    school_id: str,
    payload: SchoolUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.SCHOOL)),
) -> SchoolResponse:
    try:
        return await service.update_school(db, principal, school_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{school_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_school(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.SCHOOL)),
) -> None:
    try:
        await service.delete_school(db, principal, school_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
