import math
from typing import Any, List, Tuple

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


async def paginate(
    db: AsyncSession,
    stmt: Select,
    page: int,
    limit: int,
    *options,
) -> Tuple[List[Any], Pagination]:
    """Run stmt for one page and count the full (unpaged) result. Loader options apply to the page query only."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()
    page_stmt = stmt.offset((page - 1) * limit).limit(limit)
    if options:
        page_stmt = page_stmt.options(*options)
    result = await db.execute(page_stmt)
    rows = list(result.scalars().all())
    return rows, Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
