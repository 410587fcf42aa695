from src.billing.domain.entities.agent_subscription import AgentSubscription, AgentSubscriptionStatus
from src.billing.domain.entities.invoice import (
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    LineItemType,
    generate_invoice_number,
)
from src.billing.domain.entities.payment_method import PaymentMethod, PaymentMethodType
from src.billing.domain.entities.plan import BillingCycle, PlanTier, PlanType, SubscriptionPlan
from src.billing.domain.entities.subscription import CURRENT_STATUSES, Subscription, SubscriptionStatus

__all__ = [
    "AgentSubscription",
    "AgentSubscriptionStatus",
    "BillingCycle",
    "CURRENT_STATUSES",
    "Invoice",
    "InvoiceLineItem",
    "InvoiceStatus",
    "LineItemType",
    "PaymentMethod",
    "PaymentMethodType",
    "PlanTier",
    "PlanType",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "generate_invoice_number",
]
