from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.domain.entities.payment_method import PaymentMethod, PaymentMethodType
from src.billing.domain.repositories.payment_method_repository import PaymentMethodRepository
from src.billing.infrastructure.models import PaymentMethodORM


def _to_domain(row: PaymentMethodORM) -> PaymentMethod:
    return PaymentMethod(
        id=row.id,
        tenant_id=row.tenant_id,
        type=PaymentMethodType(row.type),
        is_default=row.is_default,
        last4=row.last4,
        brand=row.brand,
        exp_month=row.exp_month,
        exp_year=row.exp_year,
        country=row.country,
        created_at=row.created_at,
    )


class PaymentMethodRepositoryImpl(PaymentMethodRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_tenant(self, tenant_id: str) -> List[PaymentMethod]:
        stmt = (
            select(PaymentMethodORM)
            .where(PaymentMethodORM.tenant_id == tenant_id)
            .order_by(PaymentMethodORM.is_default.desc(), PaymentMethodORM.created_at.asc())
        )
        return [_to_domain(r) for r in (await self._session.execute(stmt)).scalars().all()]

    async def get(self, tenant_id: str, method_id: UUID) -> Optional[PaymentMethod]:
        stmt = select(PaymentMethodORM).where(
            PaymentMethodORM.id == method_id, PaymentMethodORM.tenant_id == tenant_id
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def set_default(self, tenant_id: str, method_id: UUID) -> None:
        await self._session.execute(
            update(PaymentMethodORM)
            .where(PaymentMethodORM.tenant_id == tenant_id)
            .values(is_default=(PaymentMethodORM.id == method_id))
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
