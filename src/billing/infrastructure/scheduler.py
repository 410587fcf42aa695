"""
Billing scheduler.

Runs the billing jobs on APScheduler cron triggers. Every run opens its own
database session; jobs commit per item.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.application.jobs import (
    CleanupOldInvoicesJob,
    HandleExpiredSubscriptionsJob,
    JobResult,
    ProcessMonthlyBillingJob,
    RenewAgentSubscriptionsJob,
    ResetUsageQuotasJob,
    RetryFailedPaymentsJob,
    SendOverdueInvoiceRemindersJob,
)
from src.billing.infrastructure.repositories import (
    AgentSubscriptionRepositoryImpl,
    InvoiceRepositoryImpl,
    PlanRepositoryImpl,
    SubscriptionRepositoryImpl,
)
from src.config import Settings
from src.shared.infrastructure.database import DatabaseSessionFactory, SQLAlchemyUnitOfWork
from src.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BillingJobs:
    monthly_billing: ProcessMonthlyBillingJob
    expired_subscriptions: HandleExpiredSubscriptionsJob
    reset_usage_quotas: ResetUsageQuotasJob
    renew_agent_subscriptions: RenewAgentSubscriptionsJob
    retry_failed_payments: RetryFailedPaymentsJob
    overdue_reminders: SendOverdueInvoiceRemindersJob
    cleanup_old_invoices: CleanupOldInvoicesJob


def build_billing_jobs(session: AsyncSession, settings: Settings) -> BillingJobs:
    uow = SQLAlchemyUnitOfWork(session)
    subscriptions = SubscriptionRepositoryImpl(session)
    invoices = InvoiceRepositoryImpl(session)
    agent_subscriptions = AgentSubscriptionRepositoryImpl(session)
    return BillingJobs(
        monthly_billing=ProcessMonthlyBillingJob(
            subscriptions=subscriptions,
            plans=PlanRepositoryImpl(session),
            invoices=invoices,
            agent_subscriptions=agent_subscriptions,
            uow=uow,
            due_days=settings.INVOICE_DUE_DAYS,
        ),
        expired_subscriptions=HandleExpiredSubscriptionsJob(
            subscriptions=subscriptions, agent_subscriptions=agent_subscriptions, uow=uow
        ),
        reset_usage_quotas=ResetUsageQuotasJob(subscriptions=subscriptions, uow=uow),
        renew_agent_subscriptions=RenewAgentSubscriptionsJob(agent_subscriptions=agent_subscriptions, uow=uow),
        retry_failed_payments=RetryFailedPaymentsJob(invoices=invoices, uow=uow),
        overdue_reminders=SendOverdueInvoiceRemindersJob(invoices=invoices, uow=uow),
        cleanup_old_invoices=CleanupOldInvoicesJob(invoices=invoices, retention_years=settings.INVOICE_RETENTION_YEARS),
    )


# (attribute on BillingJobs, job id, human name, cron fields)
SCHEDULE = (
    ("monthly_billing", "process_monthly_billing", "Process monthly billing", {"day": 1, "hour": 0, "minute": 0}),
    ("reset_usage_quotas", "reset_usage_quotas", "Reset usage quotas", {"day": 1, "hour": 0, "minute": 5}),
    ("expired_subscriptions", "handle_expired_subscriptions", "Handle expired subscriptions", {"hour": 1, "minute": 0}),
    ("renew_agent_subscriptions", "renew_agent_subscriptions", "Renew agent subscriptions", {"hour": 1, "minute": 30}),
    ("retry_failed_payments", "retry_failed_payments", "Retry failed payments", {"hour": 2, "minute": 0}),
    ("overdue_reminders", "send_overdue_invoice_reminders", "Send overdue invoice reminders", {"hour": 9, "minute": 0}),
    ("cleanup_old_invoices", "cleanup_old_invoices", "Cleanup old invoices", {"day": 1, "hour": 3, "minute": 0}),
)


class BillingScheduler:
    """Scheduler for recurring billing work."""

    def __init__(self, session_factory: DatabaseSessionFactory, settings: Settings):
        self._session_factory = session_factory
        self._settings = settings
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    @asynccontextmanager
    async def _jobs(self) -> AsyncIterator[BillingJobs]:
        async with self._session_factory.session_factory() as session:
            yield build_billing_jobs(session, self._settings)

    async def run_job(self, attr: str, **kwargs: Any) -> JobResult:
        async with self._jobs() as jobs:
            return await getattr(jobs, attr).run(**kwargs)

    def start(self) -> None:
        logger.info("Starting billing scheduler...")
        for attr, job_id, name, cron in SCHEDULE:
            self.scheduler.add_job(
                self.run_job,
                CronTrigger(timezone="UTC", **cron),
                args=[attr],
                id=job_id,
                name=name,
                replace_existing=True,
            )
        self.scheduler.start()
        logger.info("Billing scheduler started", jobs=len(SCHEDULE))

    def stop(self) -> None:
        logger.info("Stopping billing scheduler...")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Billing scheduler stopped")
