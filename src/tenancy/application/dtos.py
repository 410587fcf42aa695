from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from src.shared.clock import utcnow
from src.tenancy.domain.entities.organization import Organization
from src.tenancy.domain.entities.tenant import Tenant
from src.tenancy.domain.entities.tenant_role import TenantRole


@dataclass
class TenantProfileDTO:
    id: str
    name: str
    short_name: Optional[str]
    type: str
    status: str
    trial_ends_at: Optional[datetime]
    is_on_trial: bool
    logo_url: Optional[str]
    subdomain: str
    total_users: int
    days_left: int
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def build(cls, tenant: Tenant, *, logo_url: Optional[str], total_users: int) -> "TenantProfileDTO":
        now = utcnow()
        return cls(
            id=tenant.id,
            name=tenant.name,
            short_name=tenant.short_name,
            type=tenant.type.value,
            status=tenant.status.value,
            trial_ends_at=tenant.trial_ends_at,
            is_on_trial=tenant.is_on_trial(now),
            logo_url=logo_url,
            subdomain=tenant.subdomain,
            total_users=total_users,
            days_left=tenant.trial_days_remaining(now),
            start_date=tenant.start_date,
            end_date=tenant.end_date,
            created_at=tenant.created_at,
            updated_at=tenant.updated_at,
        )


@dataclass
class OrganizationDTO:
    id: UUID
    tenant_id: str
    name: str
    short_name: Optional[str]
    industry: Optional[str]
    company_size: Optional[str]
    country: Optional[str]
    phone: Optional[str]
    timezone: Optional[str]
    logo_url: Optional[str]
    description: Optional[str]
    settings: Dict[str, Any]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    users_count: Optional[int] = None

    @classmethod
    def from_entity(cls, org: Organization, users_count: Optional[int] = None) -> "OrganizationDTO":
        return cls(
            id=org.id,
            tenant_id=org.tenant_id,
            name=org.name,
            short_name=org.short_name,
            industry=org.industry,
            company_size=org.company_size,
            country=org.country,
            phone=org.phone,
            timezone=org.timezone,
            logo_url=org.logo_url,
            description=org.description,
            settings=dict(org.settings or {}),
            created_at=org.created_at,
            updated_at=org.updated_at,
            users_count=users_count,
        )


@dataclass
class TenantRoleDTO:
    id: UUID
    name: str
    permissions: List[str] = field(default_factory=list)
    permissions_count: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, role: TenantRole) -> "TenantRoleDTO":
        return cls(
            id=role.id,
            name=role.name,
            permissions=list(role.permissions),
            permissions_count=role.permissions_count,
            created_at=role.created_at,
        )
