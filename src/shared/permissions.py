# src/shared/permissions.py
"""
Permission catalog.

Console permissions are evaluated outside of any tenant (platform staff);
tenant permissions are granted through tenant roles.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

CONSOLE_GUARD = "console"
TENANT_GUARD = "tenant"


def _expand(prefix: str, actions: Iterable[str]) -> Tuple[str, ...]:
    return tuple(f"{prefix}.{a}" for a in actions)


CONSOLE_PERMISSIONS: Tuple[str, ...] = (
    *_expand("console.tenants", ("view", "create", "edit", "delete", "activate", "deactivate")),
    *_expand("console.users", ("view", "create", "edit", "delete")),
    *_expand("console.organizations", ("view", "create", "edit", "deactivate")),
    *_expand("console.subscriptions", ("view", "create", "edit", "cancel", "delete")),
    *_expand("console.agents", ("view", "create", "edit", "delete", "publish")),
    *_expand("console.permissions", ("view", "create", "edit", "delete")),
    *_expand("console.roles", ("view", "create", "edit", "delete")),
    *_expand("console.analytics", ("view", "export")),
    "support.impersonate",
    *_expand("support.tenants", ("read", "manage_users", "manage_agents", "view_audit", "manage_settings")),
    *_expand("console.settings", ("view", "edit")),
    *_expand("console.logs", ("view", "export")),
)

TENANT_PERMISSIONS: Tuple[str, ...] = (
    "tenant.dashboard.view",
    *_expand("tenant.profile", ("view", "edit")),
    *_expand("tenant.users", ("view", "invite", "edit", "remove", "manage_roles")),
    *_expand("tenant.roles", ("view", "create", "edit", "delete")),
    *_expand("tenant.organizations", ("view", "edit", "settings")),
    *_expand("tenant.agents", ("view", "install", "uninstall", "configure", "run")),
    *_expand("tenant.agent_runs", ("view", "retry", "cancel")),
    *_expand("tenant.workflows", ("view", "create", "edit", "delete", "execute")),
    *_expand("tenant.teams", ("view", "create", "edit", "delete", "manage_members")),
    *_expand("tenant.projects", ("view", "create", "edit", "delete")),
    *_expand("tenant.departments", ("view", "create", "edit", "delete")),
    *_expand("tenant.branches", ("view", "create", "edit", "delete")),
    *_expand("tenant.subscription", ("view", "change_plan", "cancel")),
    *_expand("tenant.billing", ("view", "manage_payment_methods", "view_invoices")),
    *_expand("tenant.api_keys", ("view", "create", "revoke")),
    *_expand("tenant.webhooks", ("view", "create", "edit", "delete")),
    *_expand("tenant.activity", ("view", "export")),
    *_expand("tenant.settings", ("view", "edit")),
)

_TENANT_SET = frozenset(TENANT_PERMISSIONS)
_CONSOLE_SET = frozenset(CONSOLE_PERMISSIONS)


def is_tenant_permission(name: str) -> bool:
    return name in _TENANT_SET


def is_console_permission(name: str) -> bool:
    return name in _CONSOLE_SET


def invalid_tenant_permissions(names: Iterable[str]) -> List[str]:
    """Names that are unknown or belong to the console guard."""
    return [n for n in names if not is_tenant_permission(n)]


def group_permissions(names: Iterable[str]) -> Dict[str, List[str]]:
    """
    Group permission names by their second dotted segment
    ("tenant.users.view" -> "users"); names without one go to "other".
    """
    grouped: Dict[str, List[str]] = {}
    for name in names:
        parts = name.split(".")
        group = parts[1] if len(parts) > 1 else "other"
        grouped.setdefault(group, []).append(name)
    return grouped
