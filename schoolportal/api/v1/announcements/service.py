from datetime import datetime
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ValidationFailedError
from schoolportal.core.models import Announcement, SchoolClass
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, authorize_class_target, fetch_in_scope, resolve_readable_scope

from .schemas import AnnouncementCreate, AnnouncementListResponse, AnnouncementResponse, AnnouncementUpdate


def _to_response(a: Announcement) -> AnnouncementResponse:
    return AnnouncementResponse.model_validate(a)


async def _check_target(db: AsyncSession, principal: Principal, class_id: Optional[str]) -> None:
    if class_id is not None and await db.get(SchoolClass, class_id) is None:
        raise ValidationFailedError("Class not found")
    await authorize_class_target(db, principal, class_id)


async def create_announcement(
    db: AsyncSession,
    principal: Principal,
    payload: AnnouncementCreate,
) -> AnnouncementResponse:
    await _check_target(db, principal, payload.class_id)
    announcement = Announcement(
        title=payload.title.strip(),
        description=payload.description,
        date=payload.date or datetime.utcnow(),
        class_id=payload.class_id,
    )
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)
    return _to_response(announcement)


async def list_announcements(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    search: Optional[str] = None,
    class_id: Optional[str] = None,
) -> AnnouncementListResponse:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Announcement.title.ilike(pattern), Announcement.description.ilike(pattern)))
    if class_id:
        filters.append(Announcement.class_id == class_id)
    scope = await resolve_readable_scope(db, principal, EntityType.ANNOUNCEMENT, all_of(filters))
    stmt = scope.apply(select(Announcement)).order_by(Announcement.date.desc())
    rows, pagination = await paginate(db, stmt, page, limit)
    return AnnouncementListResponse(data=[_to_response(a) for a in rows], pagination=pagination)


async def get_announcement(db: AsyncSession, principal: Principal, announcement_id: str) -> AnnouncementResponse:
    announcement = await fetch_in_scope(db, principal, EntityType.ANNOUNCEMENT, Announcement, announcement_id)
    return _to_response(announcement)


async def update_announcement(
    db: AsyncSession,
    principal: Principal,
    announcement_id: str,
    payload: AnnouncementUpdate,
) -> AnnouncementResponse:
    announcement = await fetch_in_scope(db, principal, EntityType.ANNOUNCEMENT, Announcement, announcement_id)
    data = payload.model_dump(exclude_unset=True)
    if "class_id" in data:
        await _check_target(db, principal, data["class_id"])
    for key, value in data.items():
        if value is not None or key == "class_id":
            setattr(announcement, key, value)
    await db.commit()
    await db.refresh(announcement)
    return _to_response(announcement)


async def delete_announcement(db: AsyncSession, principal: Principal, announcement_id: str) -> None:
    announcement = await fetch_in_scope(db, principal, EntityType.ANNOUNCEMENT, Announcement, announcement_id)
    await db.delete(announcement)
    await db.commit()
