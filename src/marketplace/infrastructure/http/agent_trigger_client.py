from __future__ import annotations

from typing import Any, Dict

import httpx

from src.marketplace.application.ports import AgentTrigger, AgentTriggerError, TriggerResponse
from src.shared.logging import get_logger

logger = get_logger(__name__)


class HttpAgentTrigger(AgentTrigger):
    """
    POSTs ``{run_id, input}`` to an agent trigger URL.

    - Any HTTP status is returned to the caller; only transport errors raise.
    - Secrets travel in headers and are never logged.
    """

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def trigger(
        self,
        url: str,
        payload: Dict[str, Any],
        *,
        headers: Dict[str, str],
        timeout: float,
    ) -> TriggerResponse:
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                r = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Agent trigger transport error", url=url, error=str(exc))
            raise AgentTriggerError(str(exc) or exc.__class__.__name__) from exc

        logger.info("Agent trigger responded", url=url, status_code=r.status_code)
        return TriggerResponse(status_code=r.status_code)
