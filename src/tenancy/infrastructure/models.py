from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.infrastructure.database.base_model import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin


class TenantORM(TimestampMixin, Base):
    """public.tenants; ``id`` is a slug that doubles as the subdomain."""
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="organization")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    subdomain_preference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    custom_domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        Index("ix_tenants__status", "status"),
        Index("ix_tenants__type", "type"),
    )


class OrganizationORM(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "organizations"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    industry: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    company_size: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (Index("ix_organizations__tenant", "tenant_id", "created_at"),)


class TenantMembershipORM(TimestampMixin, Base):
    __tablename__ = "tenant_memberships"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="member")
    current_organization_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True
    )
    invited_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    joined_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    left_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    # "metadata" is reserved on declarative classes
    meta: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_tenant_memberships__status", "status"),
        Index("ix_tenant_memberships__user", "user_id"),
    )


class TenantRoleORM(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tenant_roles"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    guard: Mapped[str] = mapped_column(String(32), nullable=False, default="tenant")
    permissions: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_tenant_roles__tenant_name"),)


class UserTenantRoleORM(Base):
    __tablename__ = "user_tenant_roles"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("tenant_roles.id", ondelete="CASCADE"), primary_key=True
    )

    __table_args__ = (Index("ix_user_tenant_roles__role", "role_id"),)
