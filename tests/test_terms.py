from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolportal.api.v1.terms import service as term_service
from schoolportal.core.exceptions import TermInvariantError
from schoolportal.core.models import Term


TERM_A = {
    "session": "2024/2025",
    "term": "First",
    "start": "2024-09-01",
    "end": "2024-12-20",
    "nextterm": "2025-01-06",
}
TERM_B = {
    "session": "2024/2025",
    "term": "Second",
    "start": "2025-01-06",
    "end": "2025-04-04",
    "nextterm": "2025-04-28",
}


async def _statuses(db: AsyncSession) -> dict:
    result = await db.execute(select(Term.id, Term.status))
    return {term_id: status for term_id, status in result.all()}


async def _active_count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Term.id)).where(Term.status == "Active"))
    return result.scalar_one()


def _fail(*args, **kwargs):
    raise OperationalError("UPDATE terms", {}, Exception("database is locked"))


@pytest.mark.asyncio
async def test_create_first_term_is_active(client: AsyncClient, auth_headers) -> None:
    response = await client.post("/api/v1/terms", json=TERM_A, headers=auth_headers("admin", "a1"))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "Active"
    assert data["daysopen"] == 110


@pytest.mark.asyncio
async def test_create_second_term_demotes_first(
    client: AsyncClient, db_session: AsyncSession, auth_headers
) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()
    b = (await client.post("/api/v1/terms", json=TERM_B, headers=headers)).json()

    statuses = await _statuses(db_session)
    assert statuses == {a["id"]: "Inactive", b["id"]: "Active"}

    listed = await client.get("/api/v1/terms", params={"status": "Active"}, headers=headers)
    assert listed.status_code == 200
    body = listed.json()
    assert [t["id"] for t in body["data"]] == [b["id"]]
    assert body["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_delete_active_term_promotes_latest_remaining(
    client: AsyncClient, db_session: AsyncSession, auth_headers
) -> None:
    headers = auth_headers("super", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()
    b = (await client.post("/api/v1/terms", json=TERM_B, headers=headers)).json()

    response = await client.delete(f"/api/v1/terms/{b['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["promoted_term_id"] == a["id"]
    assert await _statuses(db_session) == {a["id"]: "Active"}


@pytest.mark.asyncio
async def test_delete_promotes_by_creation_time_not_dates(
    client: AsyncClient, db_session: AsyncSession, auth_headers
) -> None:
    now = datetime.utcnow()
    db_session.add_all(
        [
            Term(id="old", session="2030/2031", term="First", start=datetime(2030, 9, 1).date(),
                 end=datetime(2030, 12, 1).date(), nextterm=datetime(2031, 1, 5).date(), daysopen=91,
                 status="Inactive", created_at=now - timedelta(days=2)),
            Term(id="newer", session="2020/2021", term="First", start=datetime(2020, 9, 1).date(),
                 end=datetime(2020, 12, 1).date(), nextterm=datetime(2021, 1, 5).date(), daysopen=91,
                 status="Inactive", created_at=now - timedelta(days=1)),
            Term(id="current", session="2024/2025", term="First", start=datetime(2024, 9, 1).date(),
                 end=datetime(2024, 12, 1).date(), nextterm=datetime(2025, 1, 5).date(), daysopen=91,
                 status="Active", created_at=now),
        ]
    )
    await db_session.commit()

    response = await client.delete("/api/v1/terms/current", headers=auth_headers("admin", "a1"))
    assert response.status_code == 200
    assert response.json()["promoted_term_id"] == "newer"
    assert await _active_count(db_session) == 1


@pytest.mark.asyncio
async def test_delete_last_term_leaves_no_active(
    client: AsyncClient, db_session: AsyncSession, auth_headers
) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()

    response = await client.delete(f"/api/v1/terms/{a['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["promoted_term_id"] is None
    assert await _statuses(db_session) == {}

    active = await client.get("/api/v1/terms/active", headers=headers)
    assert active.status_code == 200
    assert active.json() is None


@pytest.mark.asyncio
async def test_update_to_active_demotes_others(
    client: AsyncClient, db_session: AsyncSession, auth_headers
) -> None:
    headers = auth_headers("management", "m1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()
    b = (await client.post("/api/v1/terms", json=TERM_B, headers=headers)).json()

    response = await client.put(f"/api/v1/terms/{a['id']}", json={"status": "Active"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Active"
    assert await _statuses(db_session) == {a["id"]: "Active", b["id"]: "Inactive"}


@pytest.mark.asyncio
async def test_update_recomputes_daysopen_unless_supplied(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()

    moved = await client.put(f"/api/v1/terms/{a['id']}", json={"end": "2024-09-11"}, headers=headers)
    assert moved.status_code == 200
    assert moved.json()["daysopen"] == 10

    explicit = await client.put(f"/api/v1/terms/{a['id']}", json={"daysopen": 7}, headers=headers)
    assert explicit.json()["daysopen"] == 7


@pytest.mark.asyncio
async def test_update_rejects_end_before_start(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()

    response = await client.put(f"/api/v1/terms/{a['id']}", json={"end": "2024-08-01"}, headers=headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_rejects_end_before_start(client: AsyncClient, auth_headers) -> None:
    payload = dict(TERM_A, end="2024-09-01")
    response = await client.post("/api/v1/terms", json=payload, headers=auth_headers("admin", "a1"))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_active_term_cannot_be_deactivated_directly(
    client: AsyncClient, db_session: AsyncSession, auth_headers
) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()

    response = await client.put(f"/api/v1/terms/{a['id']}", json={"status": "Inactive"}, headers=headers)
    assert response.status_code == 400
    assert await _active_count(db_session) == 1


@pytest.mark.asyncio
async def test_missing_term_is_404(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("admin", "a1")
    assert (await client.get("/api/v1/terms/nope", headers=headers)).status_code == 404
    assert (await client.put("/api/v1/terms/nope", json={"daysopen": 3}, headers=headers)).status_code == 404
    assert (await client.delete("/api/v1/terms/nope", headers=headers)).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["teacher", "student", "parent"])
async def test_non_staff_cannot_write_terms(client: AsyncClient, auth_headers, role: str) -> None:
    response = await client.post("/api/v1/terms", json=TERM_A, headers=auth_headers(role, "x1"))
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["teacher", "student", "parent"])
async def test_every_role_reads_terms(client: AsyncClient, auth_headers, role: str) -> None:
    await client.post("/api/v1/terms", json=TERM_A, headers=auth_headers("admin", "a1"))
    response = await client.get("/api/v1/terms/active", headers=auth_headers(role, "x1"))
    assert response.status_code == 200
    assert response.json()["term"] == "First"


@pytest.mark.asyncio
async def test_unknown_role_cannot_read_terms(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/v1/terms", headers=auth_headers("janitor", "x1"))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_puts_active_first(client: AsyncClient, auth_headers) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()
    b = (await client.post("/api/v1/terms", json=TERM_B, headers=headers)).json()
    await client.put(f"/api/v1/terms/{a['id']}", json={"status": "Active"}, headers=headers)

    data = (await client.get("/api/v1/terms", headers=headers)).json()["data"]
    assert [t["id"] for t in data] == [a["id"], b["id"]]


@pytest.mark.asyncio
async def test_sequence_keeps_exactly_one_active(
    client: AsyncClient, db_session: AsyncSession, auth_headers
) -> None:
    headers = auth_headers("admin", "a1")
    ids = []
    for n, name in enumerate(["First", "Second", "Third"]):
        payload = dict(TERM_A, term=name, session=f"202{n}/202{n + 1}")
        ids.append((await client.post("/api/v1/terms", json=payload, headers=headers)).json()["id"])
        assert await _active_count(db_session) == 1

    await client.put(f"/api/v1/terms/{ids[0]}", json={"status": "Active"}, headers=headers)
    assert await _active_count(db_session) == 1
    await client.delete(f"/api/v1/terms/{ids[0]}", headers=headers)
    assert await _active_count(db_session) == 1
    await client.delete(f"/api/v1/terms/{ids[2]}", headers=headers)
    assert await _active_count(db_session) == 1
    await client.delete(f"/api/v1/terms/{ids[1]}", headers=headers)
    assert await _active_count(db_session) == 0


@pytest.mark.asyncio
async def test_failed_create_leaves_previous_active(
    client: AsyncClient, db_session: AsyncSession, auth_headers, monkeypatch
) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()

    monkeypatch.setattr(db_session, "flush", _fail)
    response = await client.post("/api/v1/terms", json=TERM_B, headers=headers)
    monkeypatch.undo()

    assert response.status_code == 503
    assert await _statuses(db_session) == {a["id"]: "Active"}


@pytest.mark.asyncio
async def test_failed_activation_leaves_previous_active(
    client: AsyncClient, db_session: AsyncSession, auth_headers, monkeypatch
) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()
    b = (await client.post("/api/v1/terms", json=TERM_B, headers=headers)).json()

    monkeypatch.setattr(db_session, "flush", _fail)
    response = await client.put(f"/api/v1/terms/{a['id']}", json={"status": "Active"}, headers=headers)
    monkeypatch.undo()

    assert response.status_code == 503
    assert await _statuses(db_session) == {a["id"]: "Inactive", b["id"]: "Active"}


@pytest.mark.asyncio
async def test_failed_promotion_keeps_deleted_term(
    client: AsyncClient, db_session: AsyncSession, auth_headers, monkeypatch
) -> None:
    headers = auth_headers("admin", "a1")
    a = (await client.post("/api/v1/terms", json=TERM_A, headers=headers)).json()
    b = (await client.post("/api/v1/terms", json=TERM_B, headers=headers)).json()

    async def _broken_promote(db):
        _fail()

    monkeypatch.setattr(term_service, "_promote_latest_term", _broken_promote)
    response = await client.delete(f"/api/v1/terms/{b['id']}", headers=headers)
    monkeypatch.undo()

    assert response.status_code == 503
    assert await _statuses(db_session) == {a["id"]: "Inactive", b["id"]: "Active"}


@pytest.mark.asyncio
async def test_invariant_check_flags_two_active_terms(db_session: AsyncSession) -> None:
    for term_id in ("x", "y"):
        db_session.add(
            Term(id=term_id, session="2024/2025", term="First", start=datetime(2024, 9, 1).date(),
                 end=datetime(2024, 12, 1).date(), nextterm=datetime(2025, 1, 5).date(), daysopen=91,
                 status="Active")
        )
    await db_session.commit()

    with pytest.raises(TermInvariantError):
        await term_service._verify_single_active(db_session)
