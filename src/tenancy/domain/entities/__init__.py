from src.tenancy.domain.entities.membership import MembershipStatus, TenantMembership
from src.tenancy.domain.entities.organization import Organization
from src.tenancy.domain.entities.tenant import Tenant, TenantStatus, TenantType
from src.tenancy.domain.entities.tenant_role import TenantRole

__all__ = [
    "MembershipStatus",
    "Organization",
    "Tenant",
    "TenantMembership",
    "TenantRole",
    "TenantStatus",
    "TenantType",
]
