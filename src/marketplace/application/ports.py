from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict


class AgentTriggerError(Exception):
    """Transport-level failure reaching an agent trigger endpoint."""


@dataclass(frozen=True)
class TriggerResponse:
    status_code: int

    @property
    def accepted(self) -> bool:
        return 200 <= self.status_code < 300


class AgentTrigger(ABC):
    """Outbound webhook that hands a run to the agent runtime."""

    @abstractmethod
    async def trigger(
        self,
        url: str,
        payload: Dict[str, Any],
        *,
        headers: Dict[str, str],
        timeout: float,
    ) -> TriggerResponse:
        raise NotImplementedError
