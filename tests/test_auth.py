import pytest
from fastapi import HTTPException
from jose import jwt

from schoolportal.auth.dependencies import get_current_principal
from schoolportal.auth.rbac import WRITE_ROLES, authorize_write, can_write, require_write
from schoolportal.auth.schemas import Principal
from schoolportal.auth.security import create_access_token
from schoolportal.core.config import settings
from schoolportal.core.enums import STAFF_ROLES, EntityType, Role
from schoolportal.core.exceptions import WritePermissionError


@pytest.mark.asyncio
async def test_principal_from_token() -> None:
    token = create_access_token(subject={"sub": "t1", "role": "Teacher"})
    principal = await get_current_principal(token)
    assert principal == Principal(id="t1", role=Role.TEACHER)
    assert not principal.is_staff


@pytest.mark.asyncio
async def test_user_id_claim_is_accepted() -> None:
    token = create_access_token(subject={"user_id": "a1", "role": "super"})
    principal = await get_current_principal(token)
    assert principal.id == "a1"
    assert principal.is_staff


@pytest.mark.asyncio
async def test_unknown_role_keeps_principal_without_role() -> None:
    token = create_access_token(subject={"sub": "x1", "role": "janitor"})
    principal = await get_current_principal(token)
    assert principal.role is None


@pytest.mark.asyncio
async def test_token_without_subject_is_rejected() -> None:
    token = create_access_token(subject={"role": "admin"})
    with pytest.raises(HTTPException) as exc:
        await get_current_principal(token)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_key_is_rejected() -> None:
    token = jwt.encode({"sub": "a1", "role": "admin"}, "another-secret", algorithm=settings.jwt_algorithm)
    with pytest.raises(HTTPException) as exc:
        await get_current_principal(token)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_expired_token_is_rejected() -> None:
    token = create_access_token(subject={"sub": "a1", "role": "admin"}, expires_minutes=-1)
    with pytest.raises(HTTPException) as exc:
        await get_current_principal(token)
    assert exc.value.status_code == 401


def test_staff_write_everything() -> None:
    for role in STAFF_ROLES:
        for entity_type in EntityType:
            assert can_write(Principal(id="a1", role=role), entity_type)


def test_teacher_write_limited_to_classroom_records() -> None:
    teacher = Principal(id="t1", role=Role.TEACHER)
    writable = {entity_type for entity_type in EntityType if can_write(teacher, entity_type)}
    assert writable == {EntityType.ATTENDANCE, EntityType.ANNOUNCEMENT, EntityType.EVENT}


@pytest.mark.parametrize("role", [Role.STUDENT, Role.PARENT, None])
def test_students_parents_and_unknown_roles_write_nothing(role) -> None:
    principal = Principal(id="x1", role=role)
    for entity_type in EntityType:
        assert not can_write(principal, entity_type)
        with pytest.raises(WritePermissionError):
            authorize_write(principal, entity_type)


def test_write_table_covers_every_entity() -> None:
    assert set(WRITE_ROLES) == set(EntityType)


@pytest.mark.asyncio
async def test_require_write_dependency() -> None:
    check = require_write(EntityType.TERM)
    admin = Principal(id="a1", role=Role.ADMIN)
    assert await check(principal=admin) is admin
    with pytest.raises(HTTPException) as exc:
        await check(principal=Principal(id="t1", role=Role.TEACHER))
    assert exc.value.status_code == 403
