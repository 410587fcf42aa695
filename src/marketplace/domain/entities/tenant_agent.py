from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from src.shared.clock import utcnow


class TenantAgentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


@dataclass(slots=True)
class TenantAgent:
    """An agent installed by a tenant."""
    tenant_id: str
    agent_id: UUID
    id: UUID = field(default_factory=uuid4)
    status: TenantAgentStatus = TenantAgentStatus.ACTIVE
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    configuration: Dict[str, Any] = field(default_factory=dict)
    installed_at: Optional[datetime] = None
    agent_name: Optional[str] = None

    def record_usage(self, now: Optional[datetime] = None) -> None:
        self.usage_count += 1
        self.last_used_at = now or utcnow()
