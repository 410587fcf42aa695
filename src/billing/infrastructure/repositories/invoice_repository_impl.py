from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.domain.entities.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from src.billing.domain.repositories.invoice_repository import InvoiceRepository
from src.billing.infrastructure.models import InvoiceORM
from src.shared.pagination import Page, page_offset

_CLOSED = (InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value, InvoiceStatus.REFUNDED.value)


def _to_domain(row: InvoiceORM) -> Invoice:
    return Invoice(
        id=row.id,
        tenant_id=row.tenant_id,
        subscription_id=row.subscription_id,
        invoice_number=row.invoice_number,
        period_start=row.period_start,
        period_end=row.period_end,
        subtotal=row.subtotal,
        tax=row.tax,
        total=row.total,
        currency=row.currency,
        status=InvoiceStatus(row.status),
        due_date=row.due_date,
        paid_at=row.paid_at,
        line_items=[InvoiceLineItem.from_dict(i) for i in (row.line_items or [])],
        retry_count=row.retry_count,
        last_reminder_at=row.last_reminder_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply(row: InvoiceORM, invoice: Invoice) -> None:
    row.subscription_id = invoice.subscription_id
    row.invoice_number = invoice.invoice_number
    row.period_start = invoice.period_start
    row.period_end = invoice.period_end
    row.subtotal = invoice.subtotal
    row.tax = invoice.tax
    row.total = invoice.total
    row.currency = invoice.currency
    row.status = invoice.status.value
    row.due_date = invoice.due_date
    row.paid_at = invoice.paid_at
    row.line_items = [i.to_dict() for i in invoice.line_items]
    row.retry_count = invoice.retry_count
    row.last_reminder_at = invoice.last_reminder_at


class InvoiceRepositoryImpl(InvoiceRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _list(self, stmt) -> List[Invoice]:
        return [_to_domain(r) for r in (await self._session.execute(stmt)).scalars().all()]

    async def list_for_tenant(self, tenant_id: str, *, page: int = 1, per_page: int = 15) -> Page[Invoice]:
        where = InvoiceORM.tenant_id == tenant_id
        total = (await self._session.execute(select(func.count()).select_from(InvoiceORM).where(where))).scalar_one()
        items = await self._list(
            select(InvoiceORM)
            .where(where)
            .order_by(InvoiceORM.created_at.desc())
            .offset(page_offset(page, per_page))
            .limit(per_page)
        )
        return Page(items=items, total=int(total), page=page, per_page=per_page)

    async def get(self, tenant_id: str, invoice_id: UUID) -> Optional[Invoice]:
        stmt = select(InvoiceORM).where(InvoiceORM.id == invoice_id, InvoiceORM.tenant_id == tenant_id)
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def add(self, invoice: Invoice) -> Invoice:
        row = InvoiceORM(id=invoice.id, tenant_id=invoice.tenant_id)
        _apply(row, invoice)
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row)

    async def update(self, invoice: Invoice) -> Invoice:
        row = await self._session.get(InvoiceORM, invoice.id)
        if row is None:
            raise LookupError(f"invoice {invoice.id} vanished")
        _apply(row, invoice)
        await self._session.flush()
        return _to_domain(row)

    async def failed_since(self, since: datetime) -> List[Invoice]:
        return await self._list(
            select(InvoiceORM).where(
                InvoiceORM.status == InvoiceStatus.FAILED.value,
                InvoiceORM.created_at >= since,
            )
        )

    async def pending_overdue(self, now: datetime) -> List[Invoice]:
        return await self._list(
            select(InvoiceORM).where(
                InvoiceORM.status == InvoiceStatus.PENDING.value,
                InvoiceORM.due_date < now,
            )
        )

    async def closed_before(self, cutoff: datetime) -> List[Invoice]:
        return await self._list(
            select(InvoiceORM).where(InvoiceORM.status.in_(_CLOSED), InvoiceORM.created_at < cutoff)
        )
