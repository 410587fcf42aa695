from src.tenancy.domain.repositories.membership_repository import MembershipRepository
from src.tenancy.domain.repositories.organization_repository import OrganizationRepository
from src.tenancy.domain.repositories.role_repository import TenantRoleRepository
from src.tenancy.domain.repositories.tenant_repository import TenantRepository

__all__ = ["MembershipRepository", "OrganizationRepository", "TenantRepository", "TenantRoleRepository"]
