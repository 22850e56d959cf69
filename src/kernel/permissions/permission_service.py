"""
Role-based permission table.

The HTTP layer checks requests against this table. The engine itself only
enforces the admin check on certificate revocation.
"""

from enum import Enum
from typing import Dict, FrozenSet

from src.kernel.models.user import UserRole


class Resource(str, Enum):
    CONTENT = "content"
    CERTIFICATES = "certificates"
    ANALYTICS = "analytics"
    PROGRESS = "progress"
    CACHE = "cache"


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    PUBLISH = "publish"
    ISSUE = "issue"
    REVOKE = "revoke"


ROLE_PERMISSIONS: Dict[UserRole, Dict[Resource, FrozenSet[Action]]] = {
    UserRole.ADMIN: {
        Resource.CONTENT: frozenset({
            Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE, Action.PUBLISH,
        }),
        Resource.CERTIFICATES: frozenset({Action.ISSUE, Action.REVOKE}),
        Resource.ANALYTICS: frozenset({Action.READ}),
        Resource.PROGRESS: frozenset({Action.READ, Action.UPDATE}),
        Resource.CACHE: frozenset({Action.READ, Action.DELETE}),
    },
    UserRole.CONTENT_MANAGER: {
        Resource.CONTENT: frozenset({Action.READ, Action.CREATE, Action.UPDATE}),
        Resource.ANALYTICS: frozenset({Action.READ}),
        Resource.PROGRESS: frozenset({Action.READ}),
    },
    UserRole.USER: {
        Resource.CONTENT: frozenset({Action.READ}),
        Resource.PROGRESS: frozenset({Action.READ, Action.UPDATE}),
    },
}


def has_permission(role: UserRole, resource: Resource, action: Action) -> bool:
    """Check whether role may perform action on resource."""
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return action in ROLE_PERMISSIONS.get(role, {}).get(resource, frozenset())
