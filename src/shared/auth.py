"""
Authentication dependencies.

JwtContextMiddleware (src.main) decodes the bearer token into
``request.state.user_claims``; everything here reads from that.
"""
from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Optional

from fastapi import Depends, Request
from pydantic import BaseModel, Field

from src.shared.exceptions import ForbiddenError, UnauthorizedError
from src.shared.logging import get_logger, log_security_event
from src.shared.roles import ConsoleRole, console_permissions_for, parse_console_role

logger = get_logger(__name__)


class CurrentUser(BaseModel):
    """
    Current authenticated user context.

    Extracted from JWT token claims.
    """
    user_id: str
    tenant_id: Optional[str] = None
    console_role: Optional[ConsoleRole] = None
    is_system_admin: bool = False
    permissions: List[str] = Field(default_factory=list)

    @property
    def console_permissions(self) -> FrozenSet[str]:
        return console_permissions_for(self.console_role, self.permissions)

    @property
    def is_admin(self) -> bool:
        return self.is_system_admin or self.console_role == ConsoleRole.SUPER_ADMIN

    def has_console_permission(self, permission: str) -> bool:
        return self.is_admin or permission in self.console_permissions


def user_from_claims(claims: Optional[Dict[str, Any]]) -> Optional[CurrentUser]:
    if not claims or not claims.get("sub"):
        return None
    return CurrentUser(
        user_id=str(claims["sub"]),
        tenant_id=claims.get("tenant_id"),
        console_role=parse_console_role(claims.get("role")),
        is_system_admin=bool(claims.get("is_system_admin", False)),
        permissions=list(claims.get("permissions") or []),
    )


async def get_current_user(request: Request) -> CurrentUser:
    """
    Resolve the caller from decoded claims.

    Raises:
        UnauthorizedError: 401 when no valid bearer token was presented
    """
    user = user_from_claims(getattr(request.state, "user_claims", None))
    if user is None:
        raise UnauthorizedError()
    return user


async def get_optional_user(request: Request) -> Optional[CurrentUser]:
    return user_from_claims(getattr(request.state, "user_claims", None))


async def require_system_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        log_security_event("system_admin_denied", user_id=user.user_id)
        raise ForbiddenError.from_code("system_admin_required")
    return user


def require_console_permission(permission: str, *, message: Optional[str] = None):
    """
    FastAPI dependency generator enforcing a console permission.

    Usage:
        @router.post("/x", dependencies=[Depends(require_console_permission("console.logs.view"))])
    """
    async def _enforce(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.has_console_permission(permission):
            logger.warning("Console permission denied", user_id=user.user_id, permission=permission)
            raise ForbiddenError(
                message or f"Unauthorized: Missing {permission} permission",
                details={"required_permission": permission},
            )
        return user

    return _enforce
