"""Invoice follow-up jobs: payment retries, overdue reminders, archiving."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from src.billing.application.jobs.base import JobResult, logger, run_each
from src.billing.domain.entities.invoice import Invoice
from src.billing.domain.repositories.invoice_repository import InvoiceRepository
from src.shared.clock import add_months, utcnow, whole_days_between
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork

RETRY_DAYS = frozenset({1, 3, 7})
REMINDER_DAYS = frozenset({1, 3, 7, 14, 30})


def _describe(invoice: Invoice):
    return {"invoice_id": str(invoice.id), "invoice_number": invoice.invoice_number}


class RetryFailedPaymentsJob:
    name = "retry_failed_payments"

    def __init__(self, *, invoices: InvoiceRepository, uow: IUnitOfWork) -> None:
        self._invoices = invoices
        self._uow = uow

    async def run(self, *, now: Optional[datetime] = None) -> JobResult:
        now = now or utcnow()

        async def _retry(invoice: Invoice) -> bool:
            days = whole_days_between(invoice.created_at, now)
            if days not in RETRY_DAYS:
                return False
            attempt = invoice.retry_payment()
            async with self._uow:
                await self._invoices.update(invoice)
                await self._uow.commit()
            logger.info("Retrying failed payment", days_since_failed=days, attempt=attempt, **_describe(invoice))
            return True

        failed = await self._invoices.failed_since(now - timedelta(days=7))
        return await run_each(self.name, failed, _retry, describe=_describe)


class SendOverdueInvoiceRemindersJob:
    name = "send_overdue_invoice_reminders"

    def __init__(self, *, invoices: InvoiceRepository, uow: IUnitOfWork) -> None:
        self._invoices = invoices
        self._uow = uow

    async def run(self, *, now: Optional[datetime] = None) -> JobResult:
        now = now or utcnow()

        async def _remind(invoice: Invoice) -> bool:
            days = whole_days_between(invoice.due_date, now)
            if days not in REMINDER_DAYS:
                return False
            # delivery is log-only; no mailer is wired
            logger.info(
                "Sending overdue reminder",
                tenant_id=invoice.tenant_id,
                days_overdue=days,
                total=str(invoice.total),
                **_describe(invoice),
            )
            invoice.record_reminder(now)
            async with self._uow:
                await self._invoices.update(invoice)
                await self._uow.commit()
            return True

        return await run_each(self.name, await self._invoices.pending_overdue(now), _remind, describe=_describe)


class CleanupOldInvoicesJob:
    """Reports closed invoices past retention; nothing is deleted."""

    name = "cleanup_old_invoices"

    def __init__(self, *, invoices: InvoiceRepository, retention_years: int = 2) -> None:
        self._invoices = invoices
        self._retention_years = retention_years

    async def run(self, *, now: Optional[datetime] = None) -> JobResult:
        cutoff = add_months(now or utcnow(), -12 * self._retention_years)

        async def _report(invoice: Invoice) -> bool:
            logger.info(
                "Invoice eligible for archiving",
                created_at=invoice.created_at.isoformat() if invoice.created_at else None,
                **_describe(invoice),
            )
            return True

        return await run_each(self.name, await self._invoices.closed_before(cutoff), _report, describe=_describe)
