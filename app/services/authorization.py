"""
Explicit actors and role permissions.

Every service operation that changes state takes an ``Actor``; nothing reads
"the current user" from ambient state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet

from app.models.enums import Role
from app.services.errors import Forbidden


class Permission(str, Enum):
    COMMIT = "commit"
    LOG_SESSION = "log_session"
    VIEW_ALL_REQUESTS = "view_all_requests"
    MANAGE_REQUESTS = "manage_requests"
    MANAGE_COMMITMENTS = "manage_commitments"
    VIEW_DASHBOARD = "view_dashboard"


_VOLUNTEER = frozenset({Permission.COMMIT, Permission.LOG_SESSION})

ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.PENDING: frozenset(),
    Role.WARRIOR: _VOLUNTEER,
    Role.LEADER: frozenset(Permission),
    Role.SHEPHERD: frozenset(),
    Role.BASONTA_SHEPHERD: frozenset(),
    Role.BASONTA_LEADER: frozenset(),
    Role.BACENTA_LEADER: frozenset(),
}

_unmapped = set(Role) - set(ROLE_PERMISSIONS)
if _unmapped:
    raise RuntimeError(f"Roles without a permission entry: {sorted(r.value for r in _unmapped)}")


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation. Unknown roles fail at construction."""
    user_id: str
    role: Role

    def __post_init__(self):
        if not self.user_id or not str(self.user_id).strip():
            raise ValueError("Actor requires a user id")
        # Raises ValueError for anything outside the Role enum
        object.__setattr__(self, "role", Role(self.role))

    def can(self, permission: Permission) -> bool:
        return permission in ROLE_PERMISSIONS[self.role]


def require(actor: Actor, permission: Permission) -> None:
    if not actor.can(permission):
        raise Forbidden(
            f"Role '{actor.role.value}' is not allowed to {permission.value.replace('_', ' ')}"
        )
