"""
Asynchronous agent execution.

A run is created pending, handed to the agent's trigger webhook, and later
completed or failed by the agent calling back with the callback secret.
"""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from src.marketplace.application.dtos import AgentRunDTO, AgentSummaryDTO, RunAcceptedDTO
from src.marketplace.application.ports import AgentTrigger, AgentTriggerError
from src.marketplace.domain.entities.agent_endpoint import EndpointType
from src.marketplace.domain.entities.agent_run import AgentRun
from src.marketplace.domain.repositories.agent_repository import AgentEndpointRepository, AgentRepository
from src.marketplace.domain.repositories.agent_run_repository import AgentRunRepository
from src.marketplace.domain.repositories.tenant_agent_repository import TenantAgentRepository
from src.shared.exceptions import BusinessRuleError, NotFoundError, UnauthorizedError, UpstreamError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.shared.logging import get_logger, log_security_event
from src.shared.security import constant_time_equals
from src.tenancy.application.services.tenant_context_service import TenantContext

logger = get_logger(__name__)


class AgentRunService:
    def __init__(
        self,
        agents: AgentRepository,
        endpoints: AgentEndpointRepository,
        runs: AgentRunRepository,
        tenant_agents: TenantAgentRepository,
        trigger: AgentTrigger,
        uow: IUnitOfWork,
    ) -> None:
        self._agents = agents
        self._endpoints = endpoints
        self._runs = runs
        self._tenant_agents = tenant_agents
        self._trigger = trigger
        self._uow = uow

    async def run(self, ctx: TenantContext, agent_id: UUID, payload: Dict[str, Any]) -> RunAcceptedDTO:
        agent = await self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError.from_code("agent_not_found")
        if not agent.is_active:
            raise BusinessRuleError.from_code("agent_inactive")

        endpoint = await self._endpoints.active_endpoint(agent.id, EndpointType.TRIGGER)
        if endpoint is None or not endpoint.url:
            raise BusinessRuleError.from_code("agent_endpoint_missing")

        run = AgentRun(agent_id=agent.id, tenant_id=ctx.tenant_id, input=payload)
        async with self._uow:
            run = await self._runs.add(run)
            await self._uow.commit()

        error: Optional[str] = None
        try:
            response = await self._trigger.trigger(
                endpoint.url,
                {"run_id": str(run.id), "input": payload},
                headers={"X-Agent-Secret": endpoint.secret, "X-Run-Id": str(run.id)},
                timeout=agent.timeout_seconds,
            )
            if response.accepted:
                run.mark_running()
            else:
                error = f"Agent trigger endpoint returned error: {response.status_code}"
        except AgentTriggerError as exc:
            error = f"Failed to connect to agent trigger endpoint: {exc}"

        if error is not None:
            run.mark_failed(error)

        async with self._uow:
            await self._runs.update(run)
            await self._record_usage(ctx.tenant_id, agent.id)
            await self._uow.commit()

        if error is not None:
            logger.warning("Agent trigger failed", agent_id=str(agent.id), run_id=str(run.id), error=error)
            raise UpstreamError.from_code(
                "agent_trigger_failed",
                details={"run_id": str(run.id), "status": run.status.value, "error": error},
            )

        logger.info("Agent execution initiated", agent_id=str(agent.id), run_id=str(run.id))
        return RunAcceptedDTO(run_id=run.id, status=run.status.value, agent=AgentSummaryDTO.from_entity(agent))

    async def _record_usage(self, tenant_id: str, agent_id: UUID) -> None:
        installation = await self._tenant_agents.get(tenant_id, agent_id)
        if installation is not None:
            installation.record_usage()
            await self._tenant_agents.update(installation)

    async def status(self, ctx: TenantContext, run_id: UUID) -> AgentRunDTO:
        run = await self._runs.get(run_id, tenant_id=ctx.tenant_id)
        if run is None:
            raise NotFoundError.from_code("agent_run_not_found")
        return AgentRunDTO.from_entity(run, await self._agents.get(run.agent_id))

    async def handle_callback(
        self,
        *,
        run_id: UUID,
        status: str,
        secret: str,
        output: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> Dict[str, Any]:
        run = await self._runs.get(run_id)
        if run is None:
            raise NotFoundError.from_code("agent_run_not_found")

        endpoint = await self._endpoints.active_endpoint(run.agent_id, EndpointType.CALLBACK)
        if endpoint is None:
            raise BusinessRuleError.from_code("agent_callback_endpoint_missing")

        if not constant_time_equals(endpoint.secret, secret):
            log_security_event("invalid_callback_secret", details={"run_id": str(run.id), "agent_id": str(run.agent_id)})
            raise UnauthorizedError.from_code("invalid_secret")

        if status == "completed":
            run.mark_completed(output or {})
        else:
            run.mark_failed(error or "Unknown error")

        async with self._uow:
            run = await self._runs.update(run)
            await self._uow.commit()
        logger.info("Agent callback processed", run_id=str(run.id), status=run.status.value)
        return {"run_id": run.id, "status": run.status.value}
