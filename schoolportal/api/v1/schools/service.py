from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import EntityType
from schoolportal.core.exceptions import ConflictError
from schoolportal.core.models import School
from schoolportal.core.pagination import paginate
from schoolportal.core.scope import all_of, fetch_in_scope, resolve_readable_scope

from .schemas import SchoolCreate, SchoolListResponse, SchoolResponse, SchoolUpdate


def _to_response(s: School) -> SchoolResponse:
    return SchoolResponse.model_validate(s)


async def create_school(db: AsyncSession, payload: SchoolCreate) -> SchoolResponse:
    school = School(**payload.model_dump())
    try:
        db.add(school)
        await db.commit()
        await db.refresh(school)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A school with this email already exists")
    return _to_response(school)


async def list_schools(
    db: AsyncSession,
    principal: Principal,
    page: int,
    limit: int,
    search: Optional[str] = None,
) -> SchoolListResponse:
    filters = []
    if search:
        pattern = f"%{search}%"
        filters.append(or_(School.name.ilike(pattern), School.address.ilike(pattern)))
    scope = await resolve_readable_scope(db, principal, EntityType.SCHOOL, all_of(filters))
    rows, pagination = await paginate(db, scope.apply(select(School)).order_by(School.name), page, limit)
    return SchoolListResponse(data=[_to_response(s) for s in rows], pagination=pagination)


async def get_school(db: AsyncSession, principal: Principal, school_id: str) -> SchoolResponse:
    return _to_response(await fetch_in_scope(db, principal, EntityType.SCHOOL, School, school_id))


async def update_school(
    db: AsyncSession,
    principal: Principal,
    school_id: str,
    payload: SchoolUpdate,
) -> SchoolResponse:
    school = await fetch_in_scope(db, principal, EntityType.SCHOOL, School, school_id)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(school, key, value)
    try:
        await db.commit()
        await db.refresh(school)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A school with this email already exists")
    return _to_response(school)


async def delete_school(db: AsyncSession, principal: Principal, school_id: str) -> None:
    school = await fetch_in_scope(db, principal, EntityType.SCHOOL, School, school_id)
    await db.delete(school)
    await db.commit()
