"""Transaction boundary shared by application services and scheduled jobs."""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IUnitOfWork(Protocol):
    """
    One database transaction per ``async with`` block.

    Repositories and the activity recorder are built on the same session as
    the unit of work, so a tenant update and its activity row commit together.
    Leaving the block without ``commit()`` discards the writes.
    """

    async def __aenter__(self) -> IUnitOfWork: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
