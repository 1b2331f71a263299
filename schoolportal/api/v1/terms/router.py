from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.dependencies import get_current_principal
from schoolportal.auth.rbac import require_write
from schoolportal.auth.schemas import Principal
from schoolportal.core.config import settings
from schoolportal.core.enums import EntityType, TermStatus
from schoolportal.core.exceptions import ServiceError
from schoolportal.core.scope import resolve_readable_scope
from schoolportal.db.session import get_db

from .schemas import TermCreate, TermDeleteResponse, TermListResponse, TermResponse, TermUpdate
from . import service

router = APIRouter(prefix="/api/v1/terms", tags=["terms"])


async def _require_read(db: AsyncSession, principal: Principal) -> None:
    try:
        await resolve_readable_scope(db, principal, EntityType.TERM)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=TermResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_write(EntityType.TERM))],
)
async def create_term(
    payload: TermCreate,
    db: AsyncSession = Depends(get_db),
) -> TermResponse:
    """Create a term. It becomes the Active term; all others become Inactive."""
    try:
        return await service.create_term(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=TermListResponse)
async def list_terms(
    status_filter: Optional[TermStatus] = Query(None, alias="status", description="Active or Inactive"),
    session: Optional[str] = Query(None, description="e.g. 2024/2025"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TermListResponse:
    await _require_read(db, principal)
    return await service.list_terms(db, page, limit, status_filter=status_filter, session=session)


@router.get("/active", response_model=Optional[TermResponse])
async def get_active_term(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Optional[TermResponse]:
    """The current Active term, or null when no term exists."""
    await _require_read(db, principal)
    return await service.get_active_term(db)


@router.get("/{term_id}", response_model=TermResponse)
async def get_term(
    term_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TermResponse:
    await _require_read(db, principal)
    term = await service.get_term(db, term_id)
    if not term:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Term not found")
    return term


@router.put(
    "/{term_id}",
    response_model=TermResponse,
    dependencies=[Depends(require_write(EntityType.TERM))],
)
async def update_term(
    term_id: str,
    payload: TermUpdate,
    db: AsyncSession = Depends(get_db),
) -> TermResponse:
    """Update a term. status=Active makes it the only Active term."""
    try:
        return await service.update_term(db, term_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{term_id}",
    response_model=TermDeleteResponse,
    dependencies=[Depends(require_write(EntityType.TERM))],
)
async def delete_term(
    term_id: str,
    db: AsyncSession = Depends(get_db),
) -> TermDeleteResponse:
    """Delete a term. Deleting the Active term promotes the most recently created remaining one."""
    try:
        return await service.remove_term(db, term_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
