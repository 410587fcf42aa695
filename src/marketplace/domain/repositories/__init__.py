from src.marketplace.domain.repositories.agent_repository import (
    AgentCategoryRepository,
    AgentEndpointRepository,
    AgentRepository,
)
from src.marketplace.domain.repositories.agent_run_repository import AgentRunRepository
from src.marketplace.domain.repositories.tenant_agent_repository import TenantAgentRepository

__all__ = [
    "AgentCategoryRepository",
    "AgentEndpointRepository",
    "AgentRepository",
    "AgentRunRepository",
    "TenantAgentRepository",
]
