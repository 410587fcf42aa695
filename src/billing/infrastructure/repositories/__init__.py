from src.billing.infrastructure.repositories.agent_subscription_repository_impl import AgentSubscriptionRepositoryImpl
from src.billing.infrastructure.repositories.invoice_repository_impl import InvoiceRepositoryImpl
from src.billing.infrastructure.repositories.payment_method_repository_impl import PaymentMethodRepositoryImpl
from src.billing.infrastructure.repositories.plan_repository_impl import PlanRepositoryImpl
from src.billing.infrastructure.repositories.subscription_repository_impl import SubscriptionRepositoryImpl

__all__ = [
    "AgentSubscriptionRepositoryImpl",
    "InvoiceRepositoryImpl",
    "PaymentMethodRepositoryImpl",
    "PlanRepositoryImpl",
    "SubscriptionRepositoryImpl",
]
