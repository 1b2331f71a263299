from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ValidationFailedError
from schoolportal.core.models import Event, SchoolClass
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, authorize_class_target, fetch_in_scope, resolve_readable_scope

from .schemas import EventCreate, EventListResponse, EventResponse, EventUpdate


def _to_response(e: Event) -> EventResponse:
    return EventResponse.model_validate(e)


def _naive_utc(value: datetime) -> datetime:
    # Some drivers drop the offset on read, so compare everything as naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _validate_window(start_time: datetime, end_time: datetime) -> None:
    if _naive_utc(end_time) <= _naive_utc(start_time):
        raise ValidationFailedError("end_time must be after start_time")


async def _check_target(db: AsyncSession, principal: Principal, class_id: Optional[str]) -> None:
    if class_id is not None and await db.get(SchoolClass, class_id) is None:
        raise ValidationFailedError("Class not found")
    await authorize_class_target(db, principal, class_id)


async def create_event(db: AsyncSession, principal: Principal, payload: EventCreate) -> EventResponse:
    _validate_window(payload.start_time, payload.end_time)
    await _check_target(db, principal, payload.class_id)
    event = Event(
        title=payload.title.strip(),
        description=payload.description,
        start_time=payload.start_time,
        end_time=payload.end_time,
        class_id=payload.class_id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return _to_response(event)


async def list_events(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    search: Optional[str] = None,
    class_id: Optional[str] = None,
    starts_after: Optional[datetime] = None,
    ends_before: Optional[datetime] = None,
) -> EventListResponse:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if class_id:
        filters.append(Event.class_id == class_id)
    if starts_after:
        filters.append(Event.start_time >= starts_after)
    if ends_before:
        filters.append(Event.end_time <= ends_before)
    scope = await resolve_readable_scope(db, principal, EntityType.EVENT, all_of(filters))
    stmt = scope.apply(select(Event)).order_by(Event.start_time)
    rows, pagination = await paginate(db, stmt, page, limit)
    return EventListResponse(data=[_to_response(e) for e in rows], pagination=pagination)


async def get_event(db: AsyncSession, principal: Principal, event_id: str) -> EventResponse:
    event = await fetch_in_scope(db, principal, EntityType.EVENT, Event, event_id)
    return _to_response(event)


async def update_event(
    db: AsyncSession,
    principal: Principal,
    event_id: str,
    payload: EventUpdate,
) -> EventResponse:
    event = await fetch_in_scope(db, principal, EntityType.EVENT, Event, event_id)
    data = payload.model_dump(exclude_unset=True)
    _validate_window(data.get("start_time") or event.start_time, data.get("end_time") or event.end_time)
    if "class_id" in data:
        await _check_target(db, principal, data["class_id"])
    for key, value in data.items():
        if value is not None or key == "class_id":
            setattr(event, key, value)
    await db.commit()
    await db.refresh(event)
    return _to_response(event)


async def delete_event(db: AsyncSession, principal: Principal, event_id: str) -> None:
    event = await fetch_in_scope(db, principal, EntityType.EVENT, Event, event_id)
    await db.delete(event)
    await db.commit()
