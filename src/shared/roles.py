# src/shared/roles.py

from enum import Enum
from typing import FrozenSet, Iterable, Optional

from src.shared.permissions import CONSOLE_PERMISSIONS


class ConsoleRole(str, Enum):
    """
    Platform staff roles (console guard, never tenant scoped).

    - SUPER_ADMIN: every console permission; also the system admin
    - ADMIN: tenant/user/subscription maintenance
    - SUPPORT: impersonation and support tooling
    - ANALYST: read-only analytics
    """
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    SUPPORT = "support"
    ANALYST = "analyst"


class MembershipRole(str, Enum):
    """Coarse role stored on a tenant membership."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


_CONSOLE_ROLE_PERMISSIONS = {
    ConsoleRole.SUPER_ADMIN: frozenset(CONSOLE_PERMISSIONS),
    ConsoleRole.ADMIN: frozenset({
        "console.tenants.view",
        "console.tenants.edit",
        "console.users.view",
        "console.users.edit",
        "console.subscriptions.view",
        "console.subscriptions.edit",
        "console.analytics.view",
        "console.logs.view",
    }),
    ConsoleRole.SUPPORT: frozenset({
        "support.impersonate",
        "support.tenants.read",
        "support.tenants.manage_users",
        "support.tenants.manage_agents",
        "support.tenants.view_audit",
        "console.tenants.view",
        "console.users.view",
    }),
    ConsoleRole.ANALYST: frozenset({
        "console.tenants.view",
        "console.analytics.view",
        "console.analytics.export",
        "console.logs.view",
    }),
}


def parse_console_role(value: Optional[str]) -> Optional[ConsoleRole]:
    if not value:
        return None
    try:
        return ConsoleRole(str(value).lower())
    except ValueError:
        return None


def console_permissions_for(role: Optional[ConsoleRole], extra: Iterable[str] = ()) -> FrozenSet[str]:
    """
    Effective console permissions of a role plus any directly granted names.

    Args:
        role: Console role or None for tenant-only users
        extra: Permission names granted outside of the role preset

    Returns:
        Frozen set of console permission names
    """
    base = _CONSOLE_ROLE_PERMISSIONS.get(role, frozenset()) if role else frozenset()
    return base | frozenset(extra)
