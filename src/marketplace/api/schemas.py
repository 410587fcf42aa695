# src/marketplace/api/schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.tenancy.api.schemas import PageMeta


class CategoryResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    parent_id: Optional[UUID] = None
    description: Optional[str] = None


class CategoryListResponse(BaseModel):
    data: List[CategoryResponse]


class AgentResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    long_description: Optional[str] = None
    icon_url: Optional[str] = None
    price_model: str
    base_price: Optional[Decimal] = None
    monthly_price: Optional[Decimal] = None
    annual_price: Optional[Decimal] = None
    is_featured: bool = False
    version: Optional[str] = None
    total_installs: int = 0
    rating: Optional[Decimal] = None
    review_count: int = 0
    runtime_type: Optional[str] = None
    capabilities: List[str] = Field(default_factory=list)
    supported_languages: List[str] = Field(default_factory=list)
    categories: List[CategoryResponse] = Field(default_factory=list)


class AgentListResponse(BaseModel):
    data: List[AgentResponse]
    meta: PageMeta


class AgentSummary(BaseModel):
    id: UUID
    name: str
    runtime_type: Optional[str] = None


class RunAgentRequest(BaseModel):
    input: Dict[str, Any] = Field(..., description="Payload forwarded to the agent runtime")


class RunAcceptedResponse(BaseModel):
    run_id: UUID
    status: str
    agent: AgentSummary


class AgentRunResponse(BaseModel):
    run_id: UUID
    status: str
    input: Dict[str, Any] = Field(default_factory=dict)
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    agent: Optional[AgentSummary] = None


class AgentCallbackRequest(BaseModel):
    """Result pushed by an agent runtime."""

    run_id: UUID
    status: Literal["completed", "failed"]
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    secret: str = Field(..., min_length=1)


class AgentCallbackResponse(BaseModel):
    run_id: UUID
    status: str


class InstallAgentRequest(BaseModel):
    configuration: Dict[str, Any] = Field(default_factory=dict)


class TenantAgentResponse(BaseModel):
    id: UUID
    agent_id: UUID
    agent_name: Optional[str] = None
    status: str
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    configuration: Dict[str, Any] = Field(default_factory=dict)
    installed_at: Optional[datetime] = None


class TenantAgentListResponse(BaseModel):
    data: List[TenantAgentResponse]
