from typing import Optional

from pydantic import BaseModel

from schoolportal.core.enums import STAFF_ROLES, Role


class Principal(BaseModel):
    """
    Authenticated actor for one request, built from the bearer token.
    role is None when the token carries no role or one this service does not know;
    scope resolution then denies everything.
    """

    id: str
    role: Optional[Role] = None

    class Config:
        frozen = True

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
