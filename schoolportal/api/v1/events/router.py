from datetime import datetime
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

from .schemas import EventCreate, EventListResponse, EventResponse, EventUpdate
from . import service

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.EVENT)),
) -> EventResponse:
    """Teachers may post to classes they teach or school-wide."""
    try:
        return await service.create_event(db, principal, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=EventListResponse)
async def list_events(
    search: Optional[str] = Query(None),
    class_id: Optional[str] = Query(None, alias="classId"),
    starts_after: Optional[datetime] = Query(None, alias="from"),
    ends_before: Optional[datetime] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> EventListResponse:
    try:
        return await service.list_events(
            db,
            principal,
            page,
            limit,
            search=search,
            class_id=class_id,
            starts_after=starts_after,
            ends_before=ends_before,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> EventResponse:
    try:
        return await service.get_event(db, principal, event_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.EVENT)),
) -> EventResponse:
    try:
        return await service.update_event(db, principal, event_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_write(EntityType.EVENT)),
) -> None:
    try:
        await service.delete_event(db, principal, event_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
