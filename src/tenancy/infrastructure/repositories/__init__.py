from src.tenancy.infrastructure.repositories.membership_repository_impl import MembershipRepositoryImpl
from src.tenancy.infrastructure.repositories.organization_repository_impl import OrganizationRepositoryImpl
from src.tenancy.infrastructure.repositories.role_repository_impl import TenantRoleRepositoryImpl
from src.tenancy.infrastructure.repositories.tenant_repository_impl import TenantRepositoryImpl

__all__ = [
    "MembershipRepositoryImpl",
    "OrganizationRepositoryImpl",
    "TenantRepositoryImpl",
    "TenantRoleRepositoryImpl",
]
