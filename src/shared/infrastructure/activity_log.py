from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import JSON, Index, String, Uuid, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.domain.activity import ActivityEntry, ActivityLogRepository
from src.shared.infrastructure.database.base_model import Base, UTCDateTime


class ActivityLogORM(Base):
    __tablename__ = "activity_log"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    log_name: Mapped[str] = mapped_column(String(64), nullable=False, default="default")
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    subject_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    subject_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    causer_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    properties: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_activity_log__subject", "subject_type", "subject_id"),
        Index("ix_activity_log__causer", "causer_id"),
    )


def _to_domain(row: ActivityLogORM) -> ActivityEntry:
    return ActivityEntry(
        id=row.id,
        log_name=row.log_name,
        description=row.description,
        subject_type=row.subject_type,
        subject_id=row.subject_id,
        causer_id=row.causer_id,
        properties=dict(row.properties or {}),
        created_at=row.created_at,
    )


class ActivityLogRepositoryImpl(ActivityLogRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, entry: ActivityEntry) -> None:
        self._session.add(
            ActivityLogORM(
                id=entry.id,
                log_name=entry.log_name,
                description=entry.description,
                subject_type=entry.subject_type,
                subject_id=entry.subject_id,
                causer_id=entry.causer_id,
                properties=entry.properties,
                created_at=entry.created_at,
            )
        )
        await self._session.flush()

    async def list_for_subject(self, subject_type: str, subject_id: str, limit: int = 50) -> List[ActivityEntry]:
        stmt = (
            select(ActivityLogORM)
            .where(ActivityLogORM.subject_type == subject_type, ActivityLogORM.subject_id == subject_id)
            .order_by(ActivityLogORM.created_at.desc())
            .limit(limit)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_to_domain(r) for r in rows]
