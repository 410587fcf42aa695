from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from src.marketplace.domain.entities.agent import Agent, AgentCategory
from src.marketplace.domain.entities.agent_run import AgentRun
from src.marketplace.domain.entities.tenant_agent import TenantAgent


@dataclass
class CategoryDTO:
    id: UUID
    name: str
    slug: str
    parent_id: Optional[UUID] = None
    description: Optional[str] = None

    @classmethod
    def from_entity(cls, category: AgentCategory) -> "CategoryDTO":
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            parent_id=category.parent_id,
            description=category.description,
        )


@dataclass
class AgentDTO:
    id: UUID
    name: str
    slug: str
    description: Optional[str]
    long_description: Optional[str]
    icon_url: Optional[str]
    price_model: str
    base_price: Optional[Decimal]
    monthly_price: Optional[Decimal]
    annual_price: Optional[Decimal]
    is_featured: bool
    version: Optional[str]
    total_installs: int
    rating: Optional[Decimal]
    review_count: int
    runtime_type: Optional[str]
    capabilities: List[str] = field(default_factory=list)
    supported_languages: List[str] = field(default_factory=list)
    categories: List[CategoryDTO] = field(default_factory=list)

    @classmethod
    def from_entity(cls, agent: Agent) -> "AgentDTO":
        return cls(
            id=agent.id,
            name=agent.name,
            slug=agent.slug,
            description=agent.description,
            long_description=agent.long_description,
            icon_url=agent.icon_url,
            price_model=agent.price_model.value,
            base_price=agent.base_price,
            monthly_price=agent.monthly_price,
            annual_price=agent.annual_price,
            is_featured=agent.is_featured,
            version=agent.version,
            total_installs=agent.total_installs,
            rating=agent.rating,
            review_count=agent.review_count,
            runtime_type=agent.runtime_type,
            capabilities=list(agent.capabilities),
            supported_languages=list(agent.supported_languages),
            categories=[CategoryDTO.from_entity(c) for c in agent.categories],
        )


@dataclass
class AgentSummaryDTO:
    id: UUID
    name: str
    runtime_type: Optional[str]

    @classmethod
    def from_entity(cls, agent: Agent) -> "AgentSummaryDTO":
        return cls(id=agent.id, name=agent.name, runtime_type=agent.runtime_type)


@dataclass
class RunAcceptedDTO:
    run_id: UUID
    status: str
    agent: AgentSummaryDTO


@dataclass
class AgentRunDTO:
    run_id: UUID
    status: str
    input: Dict[str, Any]
    output: Optional[Dict[str, Any]]
    error: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    agent: Optional[AgentSummaryDTO] = None

    @classmethod
    def from_entity(cls, run: AgentRun, agent: Optional[Agent] = None) -> "AgentRunDTO":
        return cls(
            run_id=run.id,
            status=run.status.value,
            input=dict(run.input or {}),
            output=run.output,
            error=run.error,
            created_at=run.created_at,
            updated_at=run.updated_at,
            agent=AgentSummaryDTO.from_entity(agent) if agent else None,
        )


@dataclass
class TenantAgentDTO:
    id: UUID
    agent_id: UUID
    agent_name: Optional[str]
    status: str
    usage_count: int
    last_used_at: Optional[datetime]
    configuration: Dict[str, Any] = field(default_factory=dict)
    installed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, installation: TenantAgent) -> "TenantAgentDTO":
        return cls(
            id=installation.id,
            agent_id=installation.agent_id,
            agent_name=installation.agent_name,
            status=installation.status.value,
            usage_count=installation.usage_count,
            last_used_at=installation.last_used_at,
            configuration=dict(installation.configuration),
            installed_at=installation.installed_at,
        )
