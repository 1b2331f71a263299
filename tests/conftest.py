import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("TERM_ISOLATION_LEVEL", "SERIALIZABLE")

from datetime import date, time
from typing import AsyncGenerator, Callable, Dict, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolportal.auth.security import create_access_token
from schoolportal.core.models import (
    Lesson,
    Parent,
    School,
    SchoolClass,
    Student,
    Subject,
    Teacher,
)
from schoolportal.db.session import Base, get_db
from schoolportal.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def engine():
    """Fresh in-memory database per test. StaticPool keeps one connection so every session sees the same tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def auth_headers() -> Callable[..., Dict[str, str]]:
    """Bearer header for a principal: auth_headers("teacher", "t1")."""

    def _make(role: Optional[str], principal_id: str = "p1") -> Dict[str, str]:
        claims = {"sub": principal_id}
        if role is not None:
            claims["role"] = role
        token = create_access_token(subject=claims)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
async def school_data(db_session: AsyncSession) -> Dict[str, str]:
    """
    Two classes with one lesson each:

        c1: lesson l1 (teacher t1, subject math), students s1 and s2 (parent p1 / p2)
        c2: lesson l2 (teacher t2, subject eng),  student s3 (parent p1)
    """
    school = School(id="sch1", name="Green Hill", email="office@greenhillschool.ng", address="1 Hill Road")
    t1 = Teacher(id="t1", username="t1", firstname="Ada", surname="Obi", email="t1@greenhillschool.ng", school_id="sch1")
    t2 = Teacher(id="t2", username="t2", firstname="Bola", surname="Eze", email="t2@greenhillschool.ng", school_id="sch1")
    p1 = Parent(id="p1", username="p1", firstname="Chi", surname="Ude", email="p1@greenhillschool.ng")
    p2 = Parent(id="p2", username="p2", firstname="Dayo", surname="Ola", email="p2@greenhillschool.ng")
    c1 = SchoolClass(id="c1", name="JSS1A", category="Junior", level="JSS1")
    c2 = SchoolClass(id="c2", name="JSS2A", category="Junior", level="JSS2")
    math = Subject(id="math", name="Mathematics", category="Science", school_id="sch1", teachers=[t1])
    eng = Subject(id="eng", name="English", category="Arts", school_id="sch1", teachers=[t2])
    db_session.add_all([school, t1, t2, p1, p2, c1, c2, math, eng])
    await db_session.flush()

    def _student(sid: str, class_id: str, parent_id: str) -> Student:
        return Student(
            id=sid,
            username=sid,
            admissionnumber=f"ADM-{sid}",
            firstname=sid.upper(),
            surname="Student",
            email=f"{sid}@greenhillschool.ng",
            admissiondate=date(2024, 9, 1),
            class_id=class_id,
            parent_id=parent_id,
            school_id="sch1",
        )

    db_session.add_all(
        [
            _student("s1", "c1", "p1"),
            _student("s2", "c1", "p2"),
            _student("s3", "c2", "p1"),
            Lesson(id="l1", name="Maths JSS1A", day_of_week=0, start_time=time(8), end_time=time(9),
                   teacher_id="t1", class_id="c1", subject_id="math"),
            Lesson(id="l2", name="English JSS2A", day_of_week=1, start_time=time(9), end_time=time(10),
                   teacher_id="t2", class_id="c2", subject_id="eng"),
        ]
    )
    await db_session.commit()
    return {"school": "sch1"}
