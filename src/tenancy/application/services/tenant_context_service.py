from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional
from uuid import UUID

from src.console.domain.repositories.impersonation_repository import ImpersonationRepository
from src.shared.auth import CurrentUser
from src.shared.clock import utcnow
from src.shared.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from src.shared.logging import get_logger, log_security_event
from src.shared.security import hash_token
from src.tenancy.domain.entities.membership import TenantMembership
from src.tenancy.domain.entities.tenant import Tenant
from src.tenancy.domain.repositories.membership_repository import MembershipRepository
from src.tenancy.domain.repositories.role_repository import TenantRoleRepository
from src.tenancy.domain.repositories.tenant_repository import TenantRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class TenantContext:
    """Who is acting inside which tenant, and with what tenant permissions."""
    tenant: Tenant
    user_id: str
    membership: Optional[TenantMembership] = None
    impersonation_mode: bool = False
    impersonation_log_id: Optional[UUID] = None
    admin_user_id: Optional[str] = None
    permissions: FrozenSet[str] = frozenset()
    all_permissions: bool = False

    @property
    def tenant_id(self) -> str:
        return self.tenant.id

    def has_permission(self, permission: str) -> bool:
        return self.all_permissions or permission in self.permissions

    def has_any(self, permissions: Iterable[str]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all(self, permissions: Iterable[str]) -> bool:
        return all(self.has_permission(p) for p in permissions)


def _normalize_host(host: Optional[str]) -> Optional[str]:
    if not host:
        return None
    return host.split(":", 1)[0].strip().lower() or None


class TenantContextResolver:
    """
    Resolves the tenant for a request and authorizes the caller inside it.

    Lookup order (active tenants only): subdomain label of the host,
    custom domain equal to the host, then the explicit tenant id.
    """

    def __init__(
        self,
        tenants: TenantRepository,
        memberships: MembershipRepository,
        roles: TenantRoleRepository,
        impersonations: ImpersonationRepository,
        *,
        base_domain: str,
    ) -> None:
        self._tenants = tenants
        self._memberships = memberships
        self._roles = roles
        self._impersonations = impersonations
        self._base_domain = base_domain.lower().lstrip(".")

    def subdomain_of(self, host: Optional[str]) -> Optional[str]:
        host = _normalize_host(host)
        if not host or not self._base_domain or not host.endswith("." + self._base_domain):
            return None
        prefix = host[: -(len(self._base_domain) + 1)]
        return prefix.split(".")[0] or None

    async def find_tenant(self, host: Optional[str], explicit_tenant_id: Optional[str]) -> Optional[Tenant]:
        subdomain = self.subdomain_of(host)
        if subdomain:
            tenant = await self._tenants.find_active(subdomain)
            if tenant is not None:
                return tenant

        normalized = _normalize_host(host)
        if normalized:
            tenant = await self._tenants.find_active_by_custom_domain(normalized)
            if tenant is not None:
                return tenant

        if explicit_tenant_id:
            return await self._tenants.find_active(explicit_tenant_id)
        return None

    async def resolve(
        self,
        user: Optional[CurrentUser],
        *,
        host: Optional[str],
        explicit_tenant_id: Optional[str],
        impersonation_token: Optional[str] = None,
    ) -> TenantContext:
        if user is None:
            raise UnauthorizedError()

        tenant = await self.find_tenant(host, explicit_tenant_id or user.tenant_id)
        if tenant is None:
            raise NotFoundError.from_code("tenant_not_found")

        if impersonation_token:
            return await self._impersonated(user, tenant, impersonation_token)

        membership = await self._memberships.get(tenant.id, user.user_id)
        if membership is None or not membership.is_active:
            log_security_event("tenant_access_denied", user_id=user.user_id, tenant_id=tenant.id)
            raise ForbiddenError.from_code("tenant_access_denied")

        if membership.is_owner:
            return TenantContext(tenant=tenant, user_id=user.user_id, membership=membership, all_permissions=True)

        permissions = await self._roles.permissions_for_user(tenant.id, user.user_id)
        return TenantContext(
            tenant=tenant,
            user_id=user.user_id,
            membership=membership,
            permissions=frozenset(permissions),
        )

    async def _impersonated(self, user: CurrentUser, tenant: Tenant, token: str) -> TenantContext:
        session = await self._impersonations.find_active_by_token_hash(hash_token(token), utcnow())
        if session is None or session.tenant_id != tenant.id or session.admin_user_id != user.user_id:
            log_security_event(
                "impersonation_token_rejected",
                user_id=user.user_id,
                tenant_id=tenant.id,
                details={"session_found": session is not None},
            )
            raise ForbiddenError.from_code("invalid_impersonation_token")

        logger.info("Impersonated tenant request", tenant_id=tenant.id, impersonation_log_id=str(session.id))
        return TenantContext(
            tenant=tenant,
            user_id=user.user_id,
            impersonation_mode=True,
            impersonation_log_id=session.id,
            admin_user_id=session.admin_user_id,
            all_permissions=True,
        )
