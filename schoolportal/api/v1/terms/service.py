"""
Term lifecycle. The only code path allowed to write Term.status.

Invariant: exactly one Active term whenever at least one term exists.
create, update-to-Active and delete each run as one transaction; any failure rolls the
whole operation back and surfaces as TermOperationError.
"""

import math
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.core.app_logger import get_logger
from schoolportal.core.config import settings
from schoolportal.core.enums import TermStatus
from schoolportal.core.exceptions import (
    NotFoundError,
    ServiceError,
    TermInvariantError,
    TermOperationError,
    ValidationFailedError,
)
from schoolportal.core.models import Term
from schoolportal.core.pagination import paginate

from .schemas import TermCreate, TermDeleteResponse, TermListResponse, TermResponse, TermUpdate

logger = get_logger("terms")

ACTIVE = TermStatus.ACTIVE.value
INACTIVE = TermStatus.INACTIVE.value


def _to_response(term: Term) -> TermResponse:
    return TermResponse.model_validate(term)


def _validate_dates(start: date, end: date) -> None:
    if end <= start:
        raise ValidationFailedError("end must be after start")


def compute_days_open(start: date, end: date) -> int:
    """Whole days from start to end, rounded up."""
    return math.ceil((end - start).total_seconds() / 86400)


@asynccontextmanager
async def _term_transaction(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """
    One atomic unit for a term write. Commits on success; rolls back on any error.
    Store failures become TermOperationError so callers can tell them apart and retry.
    """
    try:
        level = settings.term_isolation_level
        if level and not db.in_transaction():
            await db.connection(execution_options={"isolation_level": level})
        yield
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Term %s rolled back: %s", action, exc)
        raise TermOperationError(f"Term {action} failed; no changes were applied") from exc


async def _lock_term(db: AsyncSession, term_id: str) -> Optional[Term]:
    result = await db.execute(select(Term).where(Term.id == term_id).with_for_update())
    return result.scalar_one_or_none()


async def _demote_active_terms(db: AsyncSession, keep_id: Optional[str] = None) -> None:
    """Set every Active term (except keep_id) to Inactive. Locks the Active rows first."""
    locked = select(Term.id).where(Term.status == ACTIVE)
    if keep_id is not None:
        locked = locked.where(Term.id != keep_id)
    await db.execute(locked.with_for_update())

    stmt = update(Term).where(Term.status == ACTIVE)
    if keep_id is not None:
        stmt = stmt.where(Term.id != keep_id)
    await db.execute(stmt.values(status=INACTIVE))


async def _promote_latest_term(db: AsyncSession) -> Optional[Term]:
    """Make the most recently created remaining term Active. Returns it, or None if no term is left."""
    result = await db.execute(
        select(Term).order_by(Term.created_at.desc(), Term.id.desc()).limit(1).with_for_update()
    )
    latest = result.scalar_one_or_none()
    if latest is not None:
        latest.status = ACTIVE
        await db.flush()
    return latest


async def _verify_single_active(db: AsyncSession) -> None:
    """Post-commit consistency check. A failure means the transaction logic above is broken."""
    result = await db.execute(
        select(
            func.count(Term.id),
            func.coalesce(func.sum(case((Term.status == ACTIVE, 1), else_=0)), 0),
        )
    )
    total, active = result.one()
    if total and active != 1:
        logger.critical("Term invariant violated: %s Active terms among %s", active, total)
        raise TermInvariantError(f"Term invariant violated: {active} Active terms")


async def create_term(db: AsyncSession, payload: TermCreate) -> TermResponse:
    """Create a term as the Active one; every previously Active term becomes Inactive."""
    _validate_dates(payload.start, payload.end)
    daysopen = payload.daysopen or compute_days_open(payload.start, payload.end)

    term = Term(
        session=payload.session.strip(),
        term=payload.term.value,
        start=payload.start,
        end=payload.end,
        nextterm=payload.nextterm,
        daysopen=daysopen,
        status=ACTIVE,
    )
    async with _term_transaction(db, "create"):
        await _demote_active_terms(db)
        db.add(term)
        await db.flush()

    await db.refresh(term)
    await _verify_single_active(db)
    logger.info("Created term %s (%s %s) as Active", term.id, term.session, term.term)
    return _to_response(term)


async def update_term(db: AsyncSession, term_id: str, payload: TermUpdate) -> TermResponse:
    """
    Apply a partial update. status=Active demotes every other Active term in the same transaction.
    daysopen is recomputed from the resulting start/end unless the patch sets it.
    """
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    activating = data.get("status") == TermStatus.ACTIVE

    async with _term_transaction(db, "update"):
        term = await _lock_term(db, term_id)
        if term is None:
            raise NotFoundError("Term not found")
        if data.get("status") == TermStatus.INACTIVE and term.status == ACTIVE:
            raise ValidationFailedError(
                "The Active term cannot be deactivated directly; activate another term instead"
            )

        start = data.get("start", term.start)
        end = data.get("end", term.end)
        _validate_dates(start, end)

        if activating:
            await _demote_active_terms(db, keep_id=term.id)

        if "session" in data:
            term.session = data["session"].strip()
        if "term" in data:
            term.term = data["term"].value
        term.start = start
        term.end = end
        if "nextterm" in data:
            term.nextterm = data["nextterm"]
        term.daysopen = data.get("daysopen") or compute_days_open(start, end)
        if activating:
            term.status = ACTIVE
        await db.flush()

    await db.refresh(term)
    if activating:
        await _verify_single_active(db)
        logger.info("Term %s is now the Active term", term.id)
    return _to_response(term)


async def remove_term(db: AsyncSession, term_id: str) -> TermDeleteResponse:
    """Delete a term. If it was Active, the most recently created remaining term takes over."""
    promoted: Optional[Term] = None
    async with _term_transaction(db, "delete"):
        term = await _lock_term(db, term_id)
        if term is None:
            raise NotFoundError("Term not found")
        was_active = term.status == ACTIVE
        await db.delete(term)
        await db.flush()
        if was_active:
            promoted = await _promote_latest_term(db)

    await _verify_single_active(db)
    if promoted is not None:
        logger.info("Deleted Active term %s; promoted %s", term_id, promoted.id)
        return TermDeleteResponse(message="Term deleted successfully", promoted_term_id=promoted.id)
    logger.info("Deleted term %s", term_id)
    return TermDeleteResponse(message="Term deleted successfully")


async def list_terms(
    db: AsyncSession,
    page: int,
    limit: int,
    status_filter: Optional[TermStatus] = None,
    session: Optional[str] = None,
) -> TermListResponse:
    """Active term first, then newest first."""
    stmt = select(Term)
    if status_filter is not None:
        stmt = stmt.where(Term.status == status_filter.value)
    if session:
        stmt = stmt.where(Term.session == session)
    stmt = stmt.order_by(case((Term.status == ACTIVE, 0), else_=1), Term.created_at.desc())
    rows, pagination = await paginate(db, stmt, page, limit)
    return TermListResponse(data=[_to_response(t) for t in rows], pagination=pagination)


async def get_term(db: AsyncSession, term_id: str) -> Optional[TermResponse]:
    term = await db.get(Term, term_id)
    return _to_response(term) if term else None


async def get_active_term(db: AsyncSession) -> Optional[TermResponse]:
    """The single Active term. Drives default reporting windows elsewhere."""
    result = await db.execute(select(Term).where(Term.status == ACTIVE))
    term = result.scalar_one_or_none()
    return _to_response(term) if term else None
