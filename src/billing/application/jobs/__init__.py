from src.billing.application.jobs.base import JobResult
from src.billing.application.jobs.invoice_jobs import (
    CleanupOldInvoicesJob,
    RetryFailedPaymentsJob,
    SendOverdueInvoiceRemindersJob,
)
from src.billing.application.jobs.subscription_jobs import (
    HandleExpiredSubscriptionsJob,
    ProcessMonthlyBillingJob,
    RenewAgentSubscriptionsJob,
    ResetUsageQuotasJob,
)

__all__ = [
    "CleanupOldInvoicesJob",
    "HandleExpiredSubscriptionsJob",
    "JobResult",
    "ProcessMonthlyBillingJob",
    "RenewAgentSubscriptionsJob",
    "ResetUsageQuotasJob",
    "RetryFailedPaymentsJob",
    "SendOverdueInvoiceRemindersJob",
]
