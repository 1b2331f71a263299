"""
Per-request relationship links between a principal and the rows they are tied to.

Teacher: classes taught (from lessons).
Student: own class.
Parent: children and the children's classes.

Each relation is loaded with a single query on first use and memoised on this object only.
A new RelationshipLinks is built for every request, so re-assignments show up on the next one.
"""

from typing import FrozenSet, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.models import Lesson, Student


class RelationshipLinks:
    def __init__(self, db: AsyncSession, principal: Principal) -> None:
        self._db = db
        self._principal = principal
        self._taught_class_ids: Optional[FrozenSet[str]] = None
        self._own_class_loaded = False
        self._own_class_id: Optional[str] = None
        self._children: Optional[List[Tuple[str, str]]] = None
        self.queries = 0

    async def taught_class_ids(self) -> FrozenSet[str]:
        """Distinct class ids of lessons taught by the principal."""
        if self._taught_class_ids is None:
            result = await self._db.execute(
                select(Lesson.class_id).where(Lesson.teacher_id == self._principal.id).distinct()
            )
            self.queries += 1
            self._taught_class_ids = frozenset(result.scalars().all())
        return self._taught_class_ids

    async def own_class_id(self) -> Optional[str]:
        """Class of the student principal; None when no student row exists."""
        if not self._own_class_loaded:
            result = await self._db.execute(
                select(Student.class_id).where(Student.id == self._principal.id)
            )
            self.queries += 1
            self._own_class_id = result.scalar_one_or_none()
            self._own_class_loaded = True
        return self._own_class_id

    async def _load_children(self) -> List[Tuple[str, str]]:
        if self._children is None:
            result = await self._db.execute(
                select(Student.id, Student.class_id).where(Student.parent_id == self._principal.id)
            )
            self.queries += 1
            self._children = [(child_id, class_id) for child_id, class_id in result.all()]
        return self._children

    async def children_ids(self) -> FrozenSet[str]:
        return frozenset(child_id for child_id, _ in await self._load_children())

    async def children_class_ids(self) -> FrozenSet[str]:
        return frozenset(class_id for _, class_id in await self._load_children())
