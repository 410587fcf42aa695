from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.marketplace.domain.entities.agent import Agent, AgentCategory, PriceModel
from src.marketplace.domain.entities.agent_endpoint import AgentEndpoint, EndpointType
from src.marketplace.domain.repositories.agent_repository import (
    AgentCategoryRepository,
    AgentEndpointRepository,
    AgentRepository,
)
from src.marketplace.infrastructure.models import (
    AgentCategoryORM,
    AgentEndpointORM,
    AgentORM,
    agent_category_map,
)
from src.shared.infrastructure.database.filters import LIKE_ESCAPE, contains_pattern
from src.shared.pagination import Page, page_offset
from src.shared.security import SecretBox


def _category_to_domain(row: AgentCategoryORM) -> AgentCategory:
    return AgentCategory(
        id=row.id,
        name=row.name,
        slug=row.slug,
        parent_id=row.parent_id,
        description=row.description,
        is_active=row.is_active,
        display_order=row.display_order,
    )


def _agent_to_domain(row: AgentORM, categories: Optional[List[AgentCategory]] = None) -> Agent:
    return Agent(
        id=row.id,
        name=row.name,
        slug=row.slug,
        description=row.description,
        long_description=row.long_description,
        icon_url=row.icon_url,
        capabilities=list(row.capabilities or []),
        supported_languages=list(row.supported_languages or []),
        price_model=PriceModel(row.price_model),
        base_price=row.base_price,
        monthly_price=row.monthly_price,
        annual_price=row.annual_price,
        is_marketplace=row.is_marketplace,
        is_active=row.is_active,
        is_featured=row.is_featured,
        version=row.version,
        total_installs=row.total_installs,
        rating=row.rating,
        review_count=row.review_count,
        runtime_type=row.runtime_type,
        execution_timeout_ms=row.execution_timeout_ms,
        categories=categories or [],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _as_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


class AgentRepositoryImpl(AgentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _categories_for(self, agent_ids: Sequence[UUID]) -> Dict[UUID, List[AgentCategory]]:
        if not agent_ids:
            return {}
        stmt = (
            select(agent_category_map.c.agent_id, AgentCategoryORM)
            .join(AgentCategoryORM, AgentCategoryORM.id == agent_category_map.c.category_id)
            .where(agent_category_map.c.agent_id.in_(list(agent_ids)))
            .order_by(AgentCategoryORM.display_order.asc(), AgentCategoryORM.name.asc())
        )
        grouped: Dict[UUID, List[AgentCategory]] = defaultdict(list)
        for agent_id, category in (await self._session.execute(stmt)).all():
            grouped[agent_id].append(_category_to_domain(category))
        return grouped

    async def search_active(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 12,
    ) -> Page[Agent]:
        stmt = select(AgentORM).where(AgentORM.is_active.is_(True))

        if category:
            category_id = _as_uuid(category)
            match = AgentCategoryORM.slug == category
            if category_id is not None:
                match = or_(match, AgentCategoryORM.id == category_id)
            stmt = stmt.where(
                exists(
                    select(agent_category_map.c.agent_id)
                    .join(AgentCategoryORM, AgentCategoryORM.id == agent_category_map.c.category_id)
                    .where(agent_category_map.c.agent_id == AgentORM.id, match)
                )
            )

        if search:
            pattern = contains_pattern(search)
            stmt = stmt.where(
                or_(
                    func.lower(AgentORM.name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(AgentORM.description).like(pattern, escape=LIKE_ESCAPE),
                )
            )

        total = (await self._session.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        rows = (
            await self._session.execute(
                stmt.order_by(AgentORM.is_featured.desc(), AgentORM.name.asc())
                .offset(page_offset(page, per_page))
                .limit(per_page)
            )
        ).scalars().all()
        categories = await self._categories_for([r.id for r in rows])
        return Page(
            items=[_agent_to_domain(r, categories.get(r.id)) for r in rows],
            total=int(total),
            page=page,
            per_page=per_page,
        )

    async def get(self, agent_id: UUID) -> Optional[Agent]:
        row = await self._session.get(AgentORM, agent_id)
        if row is None:
            return None
        categories = await self._categories_for([row.id])
        return _agent_to_domain(row, categories.get(row.id))

    async def add(self, agent: Agent) -> Agent:
        row = AgentORM(
            id=agent.id,
            name=agent.name,
            slug=agent.slug,
            description=agent.description,
            long_description=agent.long_description,
            icon_url=agent.icon_url,
            capabilities=list(agent.capabilities),
            supported_languages=list(agent.supported_languages),
            price_model=agent.price_model.value,
            base_price=agent.base_price,
            monthly_price=agent.monthly_price,
            annual_price=agent.annual_price,
            is_marketplace=agent.is_marketplace,
            is_active=agent.is_active,
            is_featured=agent.is_featured,
            version=agent.version,
            total_installs=agent.total_installs,
            rating=agent.rating,
            review_count=agent.review_count,
            runtime_type=agent.runtime_type,
            execution_timeout_ms=agent.execution_timeout_ms,
        )
        self._session.add(row)
        await self._session.flush()
        if agent.categories:
            await self._session.execute(
                agent_category_map.insert(),
                [{"agent_id": row.id, "category_id": c.id} for c in agent.categories],
            )
        return _agent_to_domain(row, list(agent.categories))

    async def increment_installs(self, agent_id: UUID, delta: int = 1) -> None:
        stmt = update(AgentORM).where(AgentORM.id == agent_id)
        if delta < 0:
            stmt = stmt.where(AgentORM.total_installs >= -delta)
        await self._session.execute(
            stmt.values(total_installs=AgentORM.total_installs + delta).execution_options(synchronize_session=False)
        )


class AgentCategoryRepositoryImpl(AgentCategoryRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_active(self) -> List[AgentCategory]:
        stmt = (
            select(AgentCategoryORM)
            .where(AgentCategoryORM.is_active.is_(True))
            .order_by(AgentCategoryORM.display_order.asc(), AgentCategoryORM.name.asc())
        )
        return [_category_to_domain(r) for r in (await self._session.execute(stmt)).scalars().all()]

    async def add(self, category: AgentCategory) -> AgentCategory:
        row = AgentCategoryORM(
            id=category.id,
            name=category.name,
            slug=category.slug,
            parent_id=category.parent_id,
            description=category.description,
            is_active=category.is_active,
            display_order=category.display_order,
        )
        self._session.add(row)
        await self._session.flush()
        return _category_to_domain(row)


class AgentEndpointRepositoryImpl(AgentEndpointRepository):
    """Secrets are encrypted on write and decrypted on read."""

    def __init__(self, session: AsyncSession, secret_box: SecretBox) -> None:
        self._session = session
        self._box = secret_box

    def _to_domain(self, row: AgentEndpointORM) -> AgentEndpoint:
        return AgentEndpoint(
            id=row.id,
            agent_id=row.agent_id,
            type=EndpointType(row.type),
            url=row.url,
            secret=self._box.decrypt(row.secret_encrypted),
            is_active=row.is_active,
        )

    async def active_endpoint(self, agent_id: UUID, endpoint_type: EndpointType) -> Optional[AgentEndpoint]:
        stmt = (
            select(AgentEndpointORM)
            .where(
                AgentEndpointORM.agent_id == agent_id,
                AgentEndpointORM.type == endpoint_type.value,
                AgentEndpointORM.is_active.is_(True),
            )
            .order_by(AgentEndpointORM.created_at.asc())
            .limit(1)
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return self._to_domain(row) if row else None

    async def add(self, endpoint: AgentEndpoint) -> AgentEndpoint:
        row = AgentEndpointORM(
            id=endpoint.id,
            agent_id=endpoint.agent_id,
            type=endpoint.type.value,
            url=endpoint.url,
            secret_encrypted=self._box.encrypt(endpoint.secret),
            is_active=endpoint.is_active,
        )
        self._session.add(row)
        await self._session.flush()
        return self._to_domain(row)
