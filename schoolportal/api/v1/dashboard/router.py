from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.dependencies import get_current_principal
from schoolportal.auth.schemas import Principal
from schoolportal.core.exceptions import ServiceError
from schoolportal.db.session import get_db

from .schemas import DashboardResponse, DashboardStats
from . import service

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> DashboardResponse:
    """Summary for the caller's role. The role always comes from the token."""
    try:
        return await service.get_dashboard(db, principal)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> DashboardStats:
    try:
        return await service.get_stats(db, principal)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
