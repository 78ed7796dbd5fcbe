from enum import Enum

from app.utils.exceptions import ValidationError


class Role(str, Enum):
    CONTRACTOR = "contractor"
    ADMIN = "admin"
    DEVELOPER = "developer"
    PROJECT_MANAGER = "project_manager"


ELEVATED_ROLES = frozenset({Role.ADMIN, Role.DEVELOPER, Role.PROJECT_MANAGER})
MANAGER_ROLES = frozenset({Role.ADMIN, Role.PROJECT_MANAGER})


def canonical_role(value) -> Role:
    """
    Map any spelling of a role ("Project Manager", "ADMIN", " developer ")
    onto the Role enum. Raises ValidationError for anything else.
    """
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid role: {value!r}")
    key = "_".join(value.strip().lower().replace("-", " ").split())
    try:
        return Role(key)
    except ValueError:
        raise ValidationError(f"Invalid role: {value}")
