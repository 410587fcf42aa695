"""
Activity log (business audit trail).

Every admin or tenant mutation worth auditing is appended here and also
emitted on the ``activity`` structlog logger.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from src.shared.clock import utcnow
from src.shared.logging import activity_logger


@dataclass(slots=True)
class ActivityEntry:
    description: str
    log_name: str = "default"
    subject_type: Optional[str] = None
    subject_id: Optional[str] = None
    causer_id: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)


class ActivityLogRepository(ABC):
    @abstractmethod
    async def add(self, entry: ActivityEntry) -> None:
        """Append an entry; the caller owns the transaction."""
        raise NotImplementedError

    @abstractmethod
    async def list_for_subject(self, subject_type: str, subject_id: str, limit: int = 50) -> List[ActivityEntry]:
        raise NotImplementedError


class ActivityRecorder:
    def __init__(self, repo: ActivityLogRepository, *, log_name: str = "default") -> None:
        self._repo = repo
        self._log_name = log_name

    async def record(
        self,
        description: str,
        *,
        subject_type: Optional[str] = None,
        subject_id: Optional[Any] = None,
        causer_id: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> ActivityEntry:
        entry = ActivityEntry(
            description=description,
            log_name=self._log_name,
            subject_type=subject_type,
            subject_id=str(subject_id) if subject_id is not None else None,
            causer_id=causer_id,
            properties=properties or {},
        )
        await self._repo.add(entry)
        activity_logger.info(
            description,
            log_name=entry.log_name,
            subject_type=subject_type,
            subject_id=entry.subject_id,
            causer_id=causer_id,
            properties=entry.properties,
        )
        return entry
