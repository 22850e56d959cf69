"""
Permission Core - RBAC access control.
"""

from src.kernel.permissions.permission_service import (
    ROLE_PERMISSIONS,
    Action,
    Resource,
    has_permission,
)

__all__ = [
    "ROLE_PERMISSIONS",
    "Action",
    "Resource",
    "has_permission",
]
