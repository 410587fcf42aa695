"""AsyncSession-backed unit of work."""
from __future__ import annotations

from types import TracebackType
from typing import Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.shared.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork:
    """
    Wraps a request-scoped (or job-scoped) ``AsyncSession``.

    Reusable: the scheduler runs several jobs against one instance, each in
    its own ``async with`` block.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._pending = False

    async def __aenter__(self) -> SQLAlchemyUnitOfWork:
        if not self.session.in_transaction():
            await self.session.begin()
        self._pending = True
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        if not self._pending:
            return
        await self.rollback()
        if exc_val is not None:
            logger.warning("uow_aborted", error_type=type(exc_val).__name__)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError:
            logger.exception("uow_commit_failed")
            await self.session.rollback()
            raise
        finally:
            self._pending = False

    async def rollback(self) -> None:
        self._pending = False
        await self.session.rollback()
