from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.console.domain.entities.impersonation import ImpersonationSession, ImpersonationStatus
from src.console.domain.repositories.impersonation_repository import ImpersonationRepository
from src.console.infrastructure.models import ImpersonationLogORM
from src.shared.pagination import Page, page_offset


def _to_domain(row: ImpersonationLogORM) -> ImpersonationSession:
    return ImpersonationSession(
        id=row.id,
        admin_user_id=row.admin_user_id,
        tenant_id=row.tenant_id,
        target_user_id=row.target_user_id,
        token_hash=row.token_hash,
        started_at=row.started_at,
        expires_at=row.expires_at,
        ended_at=row.ended_at,
        ip_address=row.ip_address,
        reason=row.reason,
        metadata=dict(row.meta or {}),
    )


def _apply(row: ImpersonationLogORM, session: ImpersonationSession) -> None:
    row.admin_user_id = session.admin_user_id
    row.tenant_id = session.tenant_id
    row.target_user_id = session.target_user_id
    row.token_hash = session.token_hash
    row.started_at = session.started_at
    row.expires_at = session.expires_at
    row.ended_at = session.ended_at
    row.ip_address = session.ip_address
    row.reason = session.reason
    row.meta = dict(session.metadata)


class ImpersonationRepositoryImpl(ImpersonationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, session: ImpersonationSession) -> ImpersonationSession:
        row = ImpersonationLogORM(id=session.id)
        _apply(row, session)
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row)

    async def get(self, session_id: UUID) -> Optional[ImpersonationSession]:
        row = await self._session.get(ImpersonationLogORM, session_id)
        return _to_domain(row) if row else None

    async def find_active_by_token_hash(self, token_hash: str, now: datetime) -> Optional[ImpersonationSession]:
        stmt = select(ImpersonationLogORM).where(
            ImpersonationLogORM.token_hash == token_hash,
            ImpersonationLogORM.ended_at.is_(None),
            or_(ImpersonationLogORM.expires_at.is_(None), ImpersonationLogORM.expires_at > now),
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def update(self, session: ImpersonationSession) -> ImpersonationSession:
        row = await self._session.get(ImpersonationLogORM, session.id)
        if row is None:
            raise LookupError(f"impersonation {session.id} vanished")
        _apply(row, session)
        await self._session.flush()
        return _to_domain(row)

    async def search(
        self,
        *,
        now: datetime,
        admin_user_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        status: Optional[ImpersonationStatus] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page[ImpersonationSession]:
        filters = []
        if admin_user_id is not None:
            filters.append(ImpersonationLogORM.admin_user_id == admin_user_id)
        if tenant_id is not None:
            filters.append(ImpersonationLogORM.tenant_id == tenant_id)
        if status == ImpersonationStatus.ACTIVE:
            filters.append(ImpersonationLogORM.ended_at.is_(None))
            filters.append(or_(ImpersonationLogORM.expires_at.is_(None), ImpersonationLogORM.expires_at > now))
        elif status == ImpersonationStatus.ENDED:
            filters.append(ImpersonationLogORM.ended_at.is_not(None))
        elif status == ImpersonationStatus.EXPIRED:
            filters.append(and_(ImpersonationLogORM.ended_at.is_(None), ImpersonationLogORM.expires_at <= now))

        total = (
            await self._session.execute(select(func.count()).select_from(ImpersonationLogORM).where(*filters))
        ).scalar_one()
        stmt = (
            select(ImpersonationLogORM)
            .where(*filters)
            .order_by(ImpersonationLogORM.started_at.desc())
            .offset(page_offset(page, per_page))
            .limit(per_page)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return Page(items=[_to_domain(r) for r in rows], total=total, page=page, per_page=per_page)
