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

from .schemas import AnnouncementCreate, AnnouncementListResponse, AnnouncementResponse, AnnouncementUpdate
from . import service

router = APIRouter(prefix="/api/v1/announcements", tags=["announcements"])


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    payload: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.ANNOUNCEMENT)),
) -> AnnouncementResponse:
    """Teachers may post to classes they teach or school-wide."""
    try:
        return await service.create_announcement(db, principal, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=AnnouncementListResponse)
async def list_announcements(
    search: Optional[str] = Query(None),
    class_id: Optional[str] = Query(None, alias="classId"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> AnnouncementListResponse:
    try:
        return await service.list_announcements(db, principal, page, limit, search=search, class_id=class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> AnnouncementResponse:
    try:
        return await service.get_announcement(db, principal, announcement_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: str,
    payload: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.ANNOUNCEMENT)),
) -> AnnouncementResponse:
    try:
        return await service.update_announcement(db, principal, announcement_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.ANNOUNCEMENT)),
) -> None:
    try:
        await service.delete_announcement(db, principal, announcement_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
