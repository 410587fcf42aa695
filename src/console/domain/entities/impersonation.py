from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from src.shared.clock import ensure_aware, utcnow, whole_minutes_between
from src.shared.security import generate_opaque_token, hash_token


class ImpersonationStatus(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"
    EXPIRED = "expired"


@dataclass(slots=True)
class ImpersonationSession:
    """
    Audit record of an admin acting inside a tenant.

    Only the sha256 of the bearer token is stored; the plain token is handed
    out once, when the session starts.
    """
    admin_user_id: str
    tenant_id: str
    token_hash: str
    started_at: datetime
    expires_at: Optional[datetime]
    id: UUID = field(default_factory=uuid4)
    target_user_id: Optional[str] = None
    ended_at: Optional[datetime] = None
    ip_address: Optional[str] = None
    reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def start(
        cls,
        *,
        admin_user_id: str,
        tenant_id: str,
        ttl_minutes: int,
        reason: Optional[str] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> tuple["ImpersonationSession", str]:
        now = now or utcnow()
        token = generate_opaque_token()
        session = cls(
            admin_user_id=admin_user_id,
            tenant_id=tenant_id,
            token_hash=hash_token(token),
            started_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
            ip_address=ip_address,
            reason=reason,
            metadata=metadata or {},
        )
        return session, token

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at is not None and ensure_aware(self.expires_at) <= (now or utcnow())

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return self.started_at is not None and self.ended_at is None and not self.is_expired(now)

    def status(self, now: Optional[datetime] = None) -> ImpersonationStatus:
        if self.ended_at is not None:
            return ImpersonationStatus.ENDED
        if self.is_expired(now):
            return ImpersonationStatus.EXPIRED
        return ImpersonationStatus.ACTIVE

    @property
    def duration_minutes(self) -> Optional[int]:
        if self.ended_at is None:
            return None
        return whole_minutes_between(self.started_at, self.ended_at)

    def end(self, now: Optional[datetime] = None) -> None:
        self.ended_at = now or utcnow()
