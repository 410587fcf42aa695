from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4


class AgentRunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class AgentRun:
    agent_id: UUID
    tenant_id: Optional[str]
    input: Dict[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    status: AgentRunStatus = AgentRunStatus.PENDING
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def mark_running(self) -> None:
        self.status = AgentRunStatus.RUNNING

    def mark_completed(self, output: Dict[str, Any]) -> None:
        self.status = AgentRunStatus.COMPLETED
        self.output = output

    def mark_failed(self, error: str) -> None:
        self.status = AgentRunStatus.FAILED
        self.error = error
