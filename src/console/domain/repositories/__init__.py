from src.console.domain.repositories.impersonation_repository import ImpersonationRepository
from src.console.domain.repositories.tenant_directory import (
    SORTABLE_COLUMNS,
    TenantDirectory,
    TenantListing,
    TenantSearchCriteria,
    TenantStatistics,
)

__all__ = [
    "ImpersonationRepository",
    "SORTABLE_COLUMNS",
    "TenantDirectory",
    "TenantListing",
    "TenantSearchCriteria",
    "TenantStatistics",
]
