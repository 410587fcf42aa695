from src.billing.domain.repositories.agent_subscription_repository import AgentSubscriptionRepository
from src.billing.domain.repositories.invoice_repository import InvoiceRepository
from src.billing.domain.repositories.payment_method_repository import PaymentMethodRepository
from src.billing.domain.repositories.plan_repository import PlanRepository
from src.billing.domain.repositories.subscription_repository import SubscriptionRepository

__all__ = [
    "AgentSubscriptionRepository",
    "InvoiceRepository",
    "PaymentMethodRepository",
    "PlanRepository",
    "SubscriptionRepository",
]
