from src.marketplace.domain.entities.agent import Agent, AgentCategory, PriceModel
from src.marketplace.domain.entities.agent_endpoint import AgentEndpoint, EndpointType
from src.marketplace.domain.entities.agent_run import AgentRun, AgentRunStatus
from src.marketplace.domain.entities.tenant_agent import TenantAgent, TenantAgentStatus

__all__ = [
    "Agent",
    "AgentCategory",
    "AgentEndpoint",
    "AgentRun",
    "AgentRunStatus",
    "EndpointType",
    "PriceModel",
    "TenantAgent",
    "TenantAgentStatus",
]
