from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from src.shared.clock import ensure_aware, utcnow, whole_days_between


class TenantType(str, Enum):
    PERSONAL = "personal"
    ORGANIZATION = "organization"


class TenantStatus(str, Enum):
    PENDING_VERIFICATION = "pending_verification"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


@dataclass(slots=True)
class Tenant:
    """
    Isolated customer account.

    The id doubles as the tenant's subdomain label.
    """
    id: str
    name: str
    type: TenantType = TenantType.ORGANIZATION
    status: TenantStatus = TenantStatus.ACTIVE
    short_name: Optional[str] = None
    email: Optional[str] = None
    subdomain_preference: Optional[str] = None
    custom_domain: Optional[str] = None
    trial_ends_at: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def subdomain(self) -> str:
        return self.id

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE and self.deleted_at is None

    def is_on_trial(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.trial_ends_at is not None and ensure_aware(self.trial_ends_at) > now

    def has_expired_trial(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.trial_ends_at is not None and ensure_aware(self.trial_ends_at) < now

    def trial_days_remaining(self, now: Optional[datetime] = None) -> int:
        if self.trial_ends_at is None:
            return 0
        return max(0, whole_days_between(now or utcnow(), self.trial_ends_at))

    def change_status(self, status: TenantStatus) -> TenantStatus:
        previous = self.status
        self.status = status
        return previous

    def soft_delete(self, now: Optional[datetime] = None) -> None:
        self.deleted_at = now or utcnow()
