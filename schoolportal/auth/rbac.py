"""
Coarse write authorization. Runs before any query; row-level limits come from scope resolution.

Super/Admin/Management may write every entity. Teachers may also write attendance,
announcements and events (within their own classes, enforced by the services).
"""

from typing import Dict, FrozenSet

from fastapi import Depends, HTTPException, status

from schoolportal.auth.dependencies import get_current_principal
from schoolportal.auth.schemas import Principal
from schoolportal.core.enums import STAFF_ROLES, EntityType, Role
from schoolportal.core.exceptions import WritePermissionError

_TEACHER_WRITABLE = frozenset({EntityType.ATTENDANCE, EntityType.ANNOUNCEMENT, EntityType.EVENT})

WRITE_ROLES: Dict[EntityType, FrozenSet[Role]] = {
    entity_type: (STAFF_ROLES | {Role.TEACHER}) if entity_type in _TEACHER_WRITABLE else STAFF_ROLES
    for entity_type in EntityType
}


def can_write(principal: Principal, entity_type: EntityType) -> bool:
    return principal.role is not None and principal.role in WRITE_ROLES[entity_type]


def authorize_write(principal: Principal, entity_type: EntityType) -> None:
    if not can_write(principal, entity_type):
        raise WritePermissionError(f"Role may not modify {entity_type.value} records")


def require_write(entity_type: EntityType):
    """
    Dependency factory rejecting principals without write access to entity_type.

    Example:
        Depends(require_write(EntityType.TERM))
    """

    async def _checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        try:
            authorize_write(principal, entity_type)
        except WritePermissionError as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
        return principal

    return _checker
