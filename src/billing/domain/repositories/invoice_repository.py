from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.billing.domain.entities.invoice import Invoice
from src.shared.pagination import Page


class InvoiceRepository(ABC):
    @abstractmethod
    async def list_for_tenant(self, tenant_id: str, *, page: int = 1, per_page: int = 15) -> Page[Invoice]:
        """Newest first."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, tenant_id: str, invoice_id: UUID) -> Optional[Invoice]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, invoice: Invoice) -> Invoice:
        raise NotImplementedError

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        raise NotImplementedError

    @abstractmethod
    async def failed_since(self, since: datetime) -> List[Invoice]:
        raise NotImplementedError

    @abstractmethod
    async def pending_overdue(self, now: datetime) -> List[Invoice]:
        raise NotImplementedError

    @abstractmethod
    async def closed_before(self, cutoff: datetime) -> List[Invoice]:
        """Paid, cancelled or refunded invoices created before ``cutoff``."""
        raise NotImplementedError
