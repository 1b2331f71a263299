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

from .schemas import ClassCreate, ClassListResponse, ClassResponse, ClassUpdate
from . import service

router = APIRouter(prefix="/api/v1/classes", tags=["classes"])


@router.post(
    "",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_write(EntityType.CLASS))],
)
async def create_class(
    payload: ClassCreate,
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    try:
        return await service.create_class(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=ClassListResponse)
async def list_classes(
    search: Optional[str] = Query(None, description="Matches name, category or level"),
    level: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ClassListResponse:
    """Teachers see classes they teach or form-master; students their own; parents their children's."""
    try:
        return await service.list_classes(db, principal, page, limit, search=search, level=level)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(
    class_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> ClassResponse:
    try:
        return await service.get_class(db, principal, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: str,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.CLASS)),
) -> ClassResponse:
    try:
        return await service.update_class(db, principal, class_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    class_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.CLASS)),
) -> None:
    try:
        await service.delete_class(db, principal, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
