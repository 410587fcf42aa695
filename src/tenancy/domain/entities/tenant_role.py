from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from src.shared.permissions import TENANT_GUARD


@dataclass(slots=True)
class TenantRole:
    tenant_id: str
    name: str
    permissions: List[str] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    guard: str = TENANT_GUARD
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def permissions_count(self) -> int:
        return len(self.permissions)

    def sync_permissions(self, names: List[str]) -> None:
        # keep first-seen order, drop duplicates
        self.permissions = list(dict.fromkeys(names))
