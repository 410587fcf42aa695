from src.console.application.services.impersonation_service import ImpersonationService
from src.console.application.services.tenant_management_service import TenantManagementService

__all__ = ["ImpersonationService", "TenantManagementService"]
