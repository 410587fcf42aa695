from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.console.domain.entities.impersonation import ImpersonationSession, ImpersonationStatus
from src.shared.pagination import Page


class ImpersonationRepository(ABC):
    @abstractmethod
    async def add(self, session: ImpersonationSession) -> ImpersonationSession:
        raise NotImplementedError

    @abstractmethod
    async def get(self, session_id: UUID) -> Optional[ImpersonationSession]:
        raise NotImplementedError

    @abstractmethod
    async def find_active_by_token_hash(self, token_hash: str, now: datetime) -> Optional[ImpersonationSession]:
        """Started, not ended and not expired at ``now``."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, session: ImpersonationSession) -> ImpersonationSession:
        raise NotImplementedError

    @abstractmethod
    async def search(
        self,
        *,
        now: datetime,
        admin_user_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        status: Optional[ImpersonationStatus] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page[ImpersonationSession]:
        """Newest first (started_at desc)."""
        raise NotImplementedError
