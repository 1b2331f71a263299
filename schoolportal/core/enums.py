from enum import Enum
from typing import Optional


class Role(str, Enum):
    SUPER = "super"
    ADMIN = "admin"
    MANAGEMENT = "management"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Case-insensitive lookup. Unknown or empty values give None, never a default role."""
        if not value or not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


STAFF_ROLES = frozenset({Role.SUPER, Role.ADMIN, Role.MANAGEMENT})


class EntityType(str, Enum):
    STUDENT = "student"
    CLASS = "class"
    SUBJECT = "subject"
    ATTENDANCE = "attendance"
    ANNOUNCEMENT = "announcement"
    EVENT = "event"
    TERM = "term"
    SCHOOL = "school"
    ADMINISTRATION = "administration"
    TEACHER = "teacher"


class TermName(str, Enum):
    FIRST = "First"
    SECOND = "Second"
    THIRD = "Third"


class TermStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
