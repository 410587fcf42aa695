# src/tenancy/api/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PageMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int


# ===== Tenant =====

class TenantProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    short_name: Optional[str] = None
    type: str
    status: str
    trial_ends_at: Optional[datetime] = None
    is_on_trial: bool
    logo_url: Optional[str] = None
    subdomain: str
    total_users: int
    days_left: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UpdateTenantRequest(BaseModel):
    """Partial tenant profile update."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, min_length=1, max_length=50)

    model_config = {"str_strip_whitespace": True}


# ===== Organizations =====

class _OrganizationFields(BaseModel):
    short_name: Optional[str] = Field(None, max_length=50)
    industry: Optional[str] = Field(None, max_length=100)
    company_size: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    timezone: Optional[str] = Field(None, max_length=64)
    logo_url: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None

    model_config = {"str_strip_whitespace": True}


class CreateOrganizationRequest(_OrganizationFields):
    name: str = Field(..., min_length=1, max_length=255)


class UpdateOrganizationRequest(_OrganizationFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class OrganizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    name: str
    short_name: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    logo_url: Optional[str] = None
    description: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    users_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrganizationListResponse(BaseModel):
    data: List[OrganizationResponse]
    meta: PageMeta


# ===== Tenant roles =====

class CreateTenantRoleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    permissions: List[str] = Field(..., min_length=1)

    model_config = {"str_strip_whitespace": True}


class UpdateTenantRoleRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    permissions: Optional[List[str]] = Field(None, min_length=1)

    model_config = {"str_strip_whitespace": True}


class TenantRoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    permissions: List[str] = Field(default_factory=list)
    permissions_count: int = 0
    created_at: Optional[datetime] = None


class TenantRoleListResponse(BaseModel):
    data: List[TenantRoleResponse]


class PermissionCatalogResponse(BaseModel):
    all: List[str]
    grouped: Dict[str, List[str]]
