from src.marketplace.infrastructure.repositories.agent_repository_impl import (
    AgentCategoryRepositoryImpl,
    AgentEndpointRepositoryImpl,
    AgentRepositoryImpl,
)
from src.marketplace.infrastructure.repositories.agent_run_repository_impl import AgentRunRepositoryImpl
from src.marketplace.infrastructure.repositories.tenant_agent_repository_impl import TenantAgentRepositoryImpl

__all__ = [
    "AgentCategoryRepositoryImpl",
    "AgentEndpointRepositoryImpl",
    "AgentRepositoryImpl",
    "AgentRunRepositoryImpl",
    "TenantAgentRepositoryImpl",
]
