from uuid import uuid4

import httpx
import pytest

from src.marketplace.application.ports import AgentTriggerError
from src.marketplace.application.services.agent_run_service import AgentRunService
from src.marketplace.domain.entities import Agent, AgentEndpoint, AgentRunStatus, EndpointType, TenantAgent
from src.marketplace.infrastructure.http import HttpAgentTrigger
from src.shared.exceptions import BusinessRuleError, NotFoundError, UnauthorizedError, UpstreamError
from src.tenancy.application.services.tenant_context_service import TenantContext
from src.tenancy.domain.entities import Tenant
from tests.fakes import (
    FakeAgentEndpointRepository,
    FakeAgentRepository,
    FakeAgentRunRepository,
    FakeTenantAgentRepository,
    FakeUnitOfWork,
    RecordingTrigger,
)


class Marketplace:
    def __init__(self, trigger=None):
        self.agent = Agent(name="Summarizer", slug="summarizer", execution_timeout_ms=15000)
        self.agents = FakeAgentRepository(self.agent)
        self.endpoints = FakeAgentEndpointRepository(
            AgentEndpoint(agent_id=self.agent.id, type=EndpointType.TRIGGER, url="https://agents.test/run", secret="t-secret"),
            AgentEndpoint(agent_id=self.agent.id, type=EndpointType.CALLBACK, url=None, secret="cb-secret"),
        )
        self.runs = FakeAgentRunRepository()
        self.installations = FakeTenantAgentRepository(TenantAgent(tenant_id="acme", agent_id=self.agent.id))
        self.trigger = trigger or RecordingTrigger()
        self.uow = FakeUnitOfWork()
        self.service = AgentRunService(
            self.agents, self.endpoints, self.runs, self.installations, self.trigger, self.uow
        )


@pytest.fixture
def ctx(world):
    return TenantContext(tenant=world.tenant, user_id="member-1", permissions=frozenset({"tenant.agents.run"}))


async def test_run_hands_off_to_trigger_and_marks_running(ctx):
    m = Marketplace()

    accepted = await m.service.run(ctx, m.agent.id, {"text": "hello"})

    assert accepted.status == "running"
    assert accepted.agent.name == "Summarizer"
    call = m.trigger.calls[0]
    assert call["url"] == "https://agents.test/run"
    assert call["payload"] == {"run_id": str(accepted.run_id), "input": {"text": "hello"}}
    assert call["headers"]["X-Agent-Secret"] == "t-secret"
    assert call["timeout"] == 15.0
    assert m.installations.rows[0].usage_count == 1
    assert m.uow.commits == 2


async def test_run_with_rejecting_trigger_fails_the_run(ctx):
    m = Marketplace(RecordingTrigger(status_code=500))

    with pytest.raises(UpstreamError) as exc:
        await m.service.run(ctx, m.agent.id, {})

    assert exc.value.code == "agent_trigger_failed"
    assert exc.value.status_code == 502
    run = next(iter(m.runs.rows.values()))
    assert run.status == AgentRunStatus.FAILED
    assert exc.value.details["run_id"] == str(run.id)
    assert "500" in run.error


async def test_run_with_unreachable_trigger(ctx):
    m = Marketplace(RecordingTrigger(fail=True))
    with pytest.raises(UpstreamError) as exc:
        await m.service.run(ctx, m.agent.id, {})
    assert exc.value.details["status"] == "failed"
    assert "connection refused" in exc.value.details["error"]


async def test_run_unknown_or_inactive_agent(ctx):
    m = Marketplace()
    with pytest.raises(NotFoundError):
        await m.service.run(ctx, uuid4(), {})

    m.agent.is_active = False
    with pytest.raises(BusinessRuleError) as exc:
        await m.service.run(ctx, m.agent.id, {})
    assert exc.value.code == "agent_inactive"


async def test_run_without_trigger_endpoint(ctx):
    m = Marketplace()
    m.endpoints.rows = [e for e in m.endpoints.rows if e.type != EndpointType.TRIGGER]
    with pytest.raises(BusinessRuleError) as exc:
        await m.service.run(ctx, m.agent.id, {})
    assert exc.value.code == "agent_endpoint_missing"


async def test_status_is_tenant_scoped(world, ctx):
    m = Marketplace()
    accepted = await m.service.run(ctx, m.agent.id, {})

    dto = await m.service.status(ctx, accepted.run_id)
    assert dto.status == "running"

    other = TenantContext(tenant=Tenant(id="globex", name="Globex"), user_id="x")
    with pytest.raises(NotFoundError):
        await m.service.status(other, accepted.run_id)


async def test_callback_completes_run(ctx):
    m = Marketplace()
    accepted = await m.service.run(ctx, m.agent.id, {})

    result = await m.service.handle_callback(
        run_id=accepted.run_id, status="completed", secret="cb-secret", output={"summary": "hi"}
    )

    assert result == {"run_id": accepted.run_id, "status": "completed"}
    assert m.runs.rows[accepted.run_id].output == {"summary": "hi"}


async def test_callback_failure_defaults_error_message(ctx):
    m = Marketplace()
    accepted = await m.service.run(ctx, m.agent.id, {})
    await m.service.handle_callback(run_id=accepted.run_id, status="failed", secret="cb-secret")
    assert m.runs.rows[accepted.run_id].error == "Unknown error"


async def test_callback_with_wrong_secret(ctx):
    m = Marketplace()
    accepted = await m.service.run(ctx, m.agent.id, {})
    with pytest.raises(UnauthorizedError) as exc:
        await m.service.handle_callback(run_id=accepted.run_id, status="completed", secret="nope")
    assert exc.value.code == "invalid_secret"
    assert m.runs.rows[accepted.run_id].status == AgentRunStatus.RUNNING


async def test_http_trigger_returns_status_code():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["secret"] = request.headers["X-Agent-Secret"]
        return httpx.Response(202)

    trigger = HttpAgentTrigger(transport=httpx.MockTransport(handler))
    response = await trigger.trigger("https://agents.test/run", {"run_id": "r1"}, headers={"X-Agent-Secret": "s"}, timeout=1)

    assert response.accepted
    assert seen["secret"] == "s"


async def test_http_trigger_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    trigger = HttpAgentTrigger(transport=httpx.MockTransport(handler))
    with pytest.raises(AgentTriggerError):
        await trigger.trigger("https://agents.test/run", {}, headers={}, timeout=1)
