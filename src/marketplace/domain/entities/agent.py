from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4


class PriceModel(str, Enum):
    FREE = "free"
    ONE_TIME = "one_time"
    SUBSCRIPTION = "subscription"
    USAGE_BASED = "usage_based"


@dataclass(slots=True)
class AgentCategory:
    name: str
    slug: str
    id: UUID = field(default_factory=uuid4)
    parent_id: Optional[UUID] = None
    description: Optional[str] = None
    is_active: bool = True
    display_order: int = 0


@dataclass(slots=True)
class Agent:
    name: str
    slug: str
    id: UUID = field(default_factory=uuid4)
    description: Optional[str] = None
    long_description: Optional[str] = None
    icon_url: Optional[str] = None
    capabilities: List[str] = field(default_factory=list)
    supported_languages: List[str] = field(default_factory=list)
    price_model: PriceModel = PriceModel.FREE
    base_price: Optional[Decimal] = None
    monthly_price: Optional[Decimal] = None
    annual_price: Optional[Decimal] = None
    is_marketplace: bool = True
    is_active: bool = True
    is_featured: bool = False
    version: Optional[str] = None
    total_installs: int = 0
    rating: Optional[Decimal] = None
    review_count: int = 0
    runtime_type: Optional[str] = None
    execution_timeout_ms: int = 30000
    categories: List[AgentCategory] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def timeout_seconds(self) -> float:
        return self.execution_timeout_ms / 1000

    @property
    def is_free(self) -> bool:
        return self.price_model == PriceModel.FREE
