from datetime import date, datetime
from typing import Dict, Set

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import EntityType, Role
from schoolportal.core.exceptions import NotFoundError, ScopeForbiddenError
from schoolportal.core.models import (
    Administration,
    Announcement,
    Attendance,
    Event,
    Lesson,
    School,
    SchoolClass,
    Student,
    Subject,
    Teacher,
    Term,
)
from schoolportal.core.relationships import RelationshipLinks
from schoolportal.core.scope import fetch_in_scope, resolve_scope


MODELS = {
    EntityType.STUDENT: Student,
    EntityType.CLASS: SchoolClass,
    EntityType.SUBJECT: Subject,
    EntityType.ATTENDANCE: Attendance,
    EntityType.ANNOUNCEMENT: Announcement,
    EntityType.EVENT: Event,
    EntityType.TERM: Term,
    EntityType.SCHOOL: School,
    EntityType.ADMINISTRATION: Administration,
    EntityType.TEACHER: Teacher,
}

PRINCIPALS = [
    Principal(id="a1", role=Role.ADMIN),
    Principal(id="t1", role=Role.TEACHER),
    Principal(id="t2", role=Role.TEACHER),
    Principal(id="s1", role=Role.STUDENT),
    Principal(id="s3", role=Role.STUDENT),
    Principal(id="p1", role=Role.PARENT),
    Principal(id="p2", role=Role.PARENT),
]


@pytest.fixture()
async def portal(db_session: AsyncSession, school_data) -> None:
    db_session.add_all(
        [
            SchoolClass(id="c3", name="SS1A", category="Senior", level="SS1"),
            Administration(id="a1", username="admin", email="admin@greenhillschool.ng", role="admin"),
            Term(id="term1", session="2024/2025", term="First", start=date(2024, 9, 1), end=date(2024, 12, 20),
                 nextterm=date(2025, 1, 6), daysopen=110, status="Active"),
            Attendance(id="att-s1", student_id="s1", lesson_id="l1", date=date(2024, 9, 2), present=True),
            Attendance(id="att-s2", student_id="s2", lesson_id="l1", date=date(2024, 9, 2), present=False),
            Attendance(id="att-s3", student_id="s3", lesson_id="l2", date=date(2024, 9, 3), present=True),
            Announcement(id="an-c1", title="JSS1A trip", description="Zoo", class_id="c1"),
            Announcement(id="an-c2", title="JSS2A test", description="Maths", class_id="c2"),
            Announcement(id="an-c3", title="SS1A club", description="Chess", class_id="c3"),
            Announcement(id="an-all", title="Holiday", description="No school", class_id=None),
            Event(id="ev-c1", title="Sports", description="Relay", class_id="c1",
                  start_time=datetime(2024, 10, 1, 9), end_time=datetime(2024, 10, 1, 12)),
            Event(id="ev-c3", title="Debate", description="Final", class_id="c3",
                  start_time=datetime(2024, 10, 2, 9), end_time=datetime(2024, 10, 2, 12)),
            Event(id="ev-all", title="Open day", description="Parents", class_id=None,
                  start_time=datetime(2024, 10, 3, 9), end_time=datetime(2024, 10, 3, 12)),
        ]
    )
    await db_session.commit()


async def _visible(db: AsyncSession, principal: Principal, entity_type: EntityType, caller_filter=None) -> Set[str]:
    model = MODELS[entity_type]
    scope = await resolve_scope(db, principal, entity_type, caller_filter)
    result = await db.execute(scope.apply(select(model.id)))
    return set(result.scalars().all())


EXPECTED: Dict[str, Dict[EntityType, Set[str]]] = {
    "t1": {
        EntityType.STUDENT: {"s1", "s2"},
        EntityType.CLASS: {"c1"},
        EntityType.SUBJECT: {"math"},
        EntityType.ATTENDANCE: {"att-s1", "att-s2"},
        EntityType.ANNOUNCEMENT: {"an-c1", "an-all"},
        EntityType.EVENT: {"ev-c1", "ev-all"},
    },
    "t2": {
        EntityType.STUDENT: {"s3"},
        EntityType.CLASS: {"c2"},
        EntityType.SUBJECT: {"eng"},
        EntityType.ATTENDANCE: {"att-s3"},
        EntityType.ANNOUNCEMENT: {"an-c2", "an-all"},
        EntityType.EVENT: {"ev-all"},
    },
    "s1": {
        EntityType.STUDENT: {"s1"},
        EntityType.CLASS: {"c1"},
        EntityType.SUBJECT: {"math"},
        EntityType.ATTENDANCE: {"att-s1"},
        EntityType.ANNOUNCEMENT: {"an-c1", "an-all"},
        EntityType.EVENT: {"ev-c1", "ev-all"},
    },
    "p1": {
        EntityType.STUDENT: {"s1", "s3"},
        EntityType.CLASS: {"c1", "c2"},
        EntityType.SUBJECT: {"math", "eng"},
        EntityType.ATTENDANCE: {"att-s1", "att-s3"},
        EntityType.ANNOUNCEMENT: {"an-c1", "an-c2", "an-all"},
        EntityType.EVENT: {"ev-c1", "ev-all"},
    },
    "p2": {
        EntityType.STUDENT: {"s2"},
        EntityType.CLASS: {"c1"},
        EntityType.SUBJECT: {"math"},
        EntityType.ATTENDANCE: {"att-s2"},
        EntityType.ANNOUNCEMENT: {"an-c1", "an-all"},
        EntityType.EVENT: {"ev-c1", "ev-all"},
    },
}


@pytest.mark.asyncio
@pytest.mark.parametrize("principal_id", sorted(EXPECTED))
async def test_role_table(db_session: AsyncSession, portal, principal_id: str) -> None:
    principal = next(p for p in PRINCIPALS if p.id == principal_id)
    for entity_type, expected in EXPECTED[principal_id].items():
        assert await _visible(db_session, principal, entity_type) == expected, entity_type


@pytest.mark.asyncio
async def test_staff_see_everything(db_session: AsyncSession, portal) -> None:
    for role in (Role.SUPER, Role.ADMIN, Role.MANAGEMENT):
        principal = Principal(id="a1", role=role)
        for entity_type, model in MODELS.items():
            everything = set((await db_session.execute(select(model.id))).scalars().all())
            scope = await resolve_scope(db_session, principal, entity_type)
            assert scope.is_unrestricted
            assert await _visible(db_session, principal, entity_type) == everything


@pytest.mark.asyncio
@pytest.mark.parametrize("entity_type", [EntityType.TERM, EntityType.SCHOOL, EntityType.ADMINISTRATION, EntityType.TEACHER])
async def test_directory_entities_readable_by_all_roles(db_session: AsyncSession, portal, entity_type) -> None:
    model = MODELS[entity_type]
    everything = set((await db_session.execute(select(model.id))).scalars().all())
    for principal in PRINCIPALS:
        assert await _visible(db_session, principal, entity_type) == everything


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [None, "janitor", ""])
async def test_unrecognized_role_denied_everywhere(db_session: AsyncSession, portal, role) -> None:
    principal = Principal(id="s1", role=Role.parse(role))
    for entity_type in EntityType:
        scope = await resolve_scope(db_session, principal, entity_type)
        assert scope.is_empty
        assert await _visible(db_session, principal, entity_type) == set()


def test_role_parse_is_case_insensitive() -> None:
    assert Role.parse("Teacher") is Role.TEACHER
    assert Role.parse(" ADMIN ") is Role.ADMIN
    assert Role.parse("root") is None
    assert Role.parse(None) is None


@pytest.mark.asyncio
async def test_scope_never_widens_caller_filter(db_session: AsyncSession, portal) -> None:
    for principal in PRINCIPALS:
        for entity_type, model in MODELS.items():
            ids = sorted((await db_session.execute(select(model.id))).scalars().all())
            caller_filter = model.id.in_(ids[:1])
            allowed = set(ids[:1])
            visible = await _visible(db_session, principal, entity_type, caller_filter)
            assert visible <= allowed, (principal.id, entity_type)


@pytest.mark.asyncio
async def test_caller_filter_outside_scope_gives_nothing(db_session: AsyncSession, portal) -> None:
    teacher = Principal(id="t1", role=Role.TEACHER)
    assert await _visible(db_session, teacher, EntityType.STUDENT, Student.class_id == "c2") == set()


@pytest.mark.asyncio
async def test_form_master_sees_own_class(db_session: AsyncSession, portal) -> None:
    c3 = await db_session.get(SchoolClass, "c3")
    c3.form_master_id = "t1"
    await db_session.commit()

    teacher = Principal(id="t1", role=Role.TEACHER)
    assert await _visible(db_session, teacher, EntityType.CLASS) == {"c1", "c3"}


@pytest.mark.asyncio
async def test_student_without_record_is_denied(db_session: AsyncSession, portal) -> None:
    ghost = Principal(id="ghost", role=Role.STUDENT)
    assert (await resolve_scope(db_session, ghost, EntityType.CLASS)).is_empty
    assert (await resolve_scope(db_session, ghost, EntityType.ANNOUNCEMENT)).is_empty


@pytest.mark.asyncio
async def test_failed_lookup_denies(db_session: AsyncSession, portal) -> None:
    teacher = Principal(id="t1", role=Role.TEACHER)
    links = RelationshipLinks(db_session, teacher)

    async def _broken():
        raise OperationalError("SELECT lessons", {}, Exception("connection reset"))

    links.taught_class_ids = _broken
    scope = await resolve_scope(db_session, teacher, EntityType.STUDENT, links=links)
    assert scope.is_empty


@pytest.mark.asyncio
async def test_links_load_each_relation_once(db_session: AsyncSession, portal) -> None:
    parent = Principal(id="p1", role=Role.PARENT)
    links = RelationshipLinks(db_session, parent)
    for entity_type in (EntityType.STUDENT, EntityType.CLASS, EntityType.ANNOUNCEMENT, EntityType.EVENT):
        await resolve_scope(db_session, parent, entity_type, links=links)
    assert links.queries == 1
    assert await links.children_ids() == {"s1", "s3"}
    assert await links.children_class_ids() == {"c1", "c2"}


@pytest.mark.asyncio
async def test_links_pick_up_reassignment_on_next_request(db_session: AsyncSession, portal) -> None:
    teacher = Principal(id="t1", role=Role.TEACHER)
    before = RelationshipLinks(db_session, teacher)
    assert await before.taught_class_ids() == {"c1"}

    lesson = await db_session.get(Lesson, "l2")
    lesson.teacher_id = "t1"
    await db_session.commit()

    assert await before.taught_class_ids() == {"c1"}
    after = RelationshipLinks(db_session, teacher)
    assert await after.taught_class_ids() == {"c1", "c2"}


@pytest.mark.asyncio
async def test_fetch_in_scope_distinguishes_missing_and_forbidden(db_session: AsyncSession, portal) -> None:
    student = Principal(id="s1", role=Role.STUDENT)
    own = await fetch_in_scope(db_session, student, EntityType.ATTENDANCE, Attendance, "att-s1")
    assert own.student_id == "s1"
    with pytest.raises(ScopeForbiddenError):
        await fetch_in_scope(db_session, student, EntityType.ATTENDANCE, Attendance, "att-s2")
    with pytest.raises(NotFoundError):
        await fetch_in_scope(db_session, student, EntityType.ATTENDANCE, Attendance, "missing")
