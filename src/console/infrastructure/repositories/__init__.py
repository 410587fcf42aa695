from src.console.infrastructure.repositories.impersonation_repository_impl import ImpersonationRepositoryImpl
from src.console.infrastructure.repositories.tenant_directory_impl import TenantDirectoryImpl

__all__ = ["ImpersonationRepositoryImpl", "TenantDirectoryImpl"]
