"""Shared plumbing for scheduled billing jobs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, TypeVar

from src.shared.logging import get_logger, time_block

logger = get_logger("billing.jobs")

T = TypeVar("T")


@dataclass
class JobResult:
    job: str
    success: int = 0
    failed: int = 0
    skipped: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {"job": self.job, "success": self.success, "failed": self.failed, "skipped": self.skipped}


async def run_each(
    job: str,
    items: Iterable[T],
    handler: Callable[[T], Awaitable[bool]],
    *,
    describe: Callable[[T], Dict[str, Any]],
) -> JobResult:
    """
    Apply ``handler`` to every item; one failing item never stops the batch.

    ``handler`` returns False when it decided to skip the item.
    """
    items = list(items)
    result = JobResult(job=job)
    logger.info("Billing job started", job=job, candidates=len(items))

    with time_block(f"billing.{job}", labels={"job": job}):
        for item in items:
            try:
                if await handler(item):
                    result.success += 1
                else:
                    result.skipped += 1
            except Exception:
                result.failed += 1
                logger.exception("Billing job item failed", job=job, **describe(item))

    logger.info("Billing job completed", **result.as_dict())
    return result
