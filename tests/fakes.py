"""In-memory stand-ins for the repository ports, shared by unit and API tests."""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Set, Tuple
from uuid import UUID

from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from src.billing.domain.entities.agent_subscription import AgentSubscription
from src.billing.domain.entities.invoice import Invoice, InvoiceStatus
from src.billing.domain.entities.payment_method import PaymentMethod
from src.billing.domain.entities.plan import PlanType, SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription, SubscriptionStatus
from src.billing.domain.repositories import (
    AgentSubscriptionRepository,
    InvoiceRepository,
    PaymentMethodRepository,
    PlanRepository,
    SubscriptionRepository,
)
from src.console.domain.entities.impersonation import ImpersonationSession, ImpersonationStatus
from src.console.domain.repositories import (
    ImpersonationRepository,
    TenantDirectory,
    TenantListing,
    TenantSearchCriteria,
    TenantStatistics,
)
from src.marketplace.application.ports import AgentTrigger, AgentTriggerError, TriggerResponse
from src.marketplace.domain.entities import Agent, AgentCategory, AgentEndpoint, AgentRun, EndpointType, TenantAgent
from src.marketplace.domain.repositories import (
    AgentCategoryRepository,
    AgentEndpointRepository,
    AgentRepository,
    AgentRunRepository,
    TenantAgentRepository,
)
from src.shared.clock import ensure_aware
from src.shared.domain.activity import ActivityEntry, ActivityLogRepository
from src.shared.pagination import Page
from src.tenancy.domain.entities import Organization, Tenant, TenantMembership, TenantRole, TenantType
from src.tenancy.domain.repositories import (
    MembershipRepository,
    OrganizationRepository,
    TenantRepository,
    TenantRoleRepository,
)


def _page(items: List[Any], page: int, per_page: int) -> Page:
    start = (max(page, 1) - 1) * per_page
    return Page(items=items[start:start + per_page], total=len(items), page=page, per_page=per_page)


class FakeUnitOfWork:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.rollback()

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


class InMemoryActivityLog(ActivityLogRepository):
    def __init__(self) -> None:
        self.entries: List[ActivityEntry] = []

    async def add(self, entry: ActivityEntry) -> None:
        self.entries.append(entry)

    async def list_for_subject(self, subject_type: str, subject_id: str, limit: int = 50) -> List[ActivityEntry]:
        found = [e for e in self.entries if e.subject_type == subject_type and e.subject_id == subject_id]
        return found[:limit]

    def descriptions(self) -> List[str]:
        return [e.description for e in self.entries]


# ---------------------------------------------------------------- tenancy


class FakeTenantRepository(TenantRepository):
    def __init__(self, *tenants: Tenant) -> None:
        self.rows: Dict[str, Tenant] = {t.id: t for t in tenants}

    async def get(self, tenant_id: str, *, include_deleted: bool = False) -> Optional[Tenant]:
        tenant = self.rows.get(tenant_id)
        if tenant is None or (tenant.deleted_at is not None and not include_deleted):
            return None
        return tenant

    async def find_active(self, tenant_id: str) -> Optional[Tenant]:
        tenant = self.rows.get(tenant_id)
        return tenant if tenant is not None and tenant.is_active else None

    async def find_active_by_custom_domain(self, host: str) -> Optional[Tenant]:
        for tenant in self.rows.values():
            if tenant.custom_domain == host and tenant.is_active:
                return tenant
        return None

    async def short_name_taken(self, short_name: str, *, exclude_id: Optional[str] = None) -> bool:
        return any(t.short_name == short_name and t.id != exclude_id for t in self.rows.values())

    async def update(self, tenant: Tenant) -> Tenant:
        self.rows[tenant.id] = tenant
        return tenant


class FakeMembershipRepository(MembershipRepository):
    def __init__(self, *memberships: TenantMembership) -> None:
        self.rows: Dict[Tuple[str, str], TenantMembership] = {(m.tenant_id, m.user_id): m for m in memberships}

    async def get(self, tenant_id: str, user_id: str) -> Optional[TenantMembership]:
        return self.rows.get((tenant_id, user_id))

    async def count_active(self, tenant_id: str) -> int:
        return sum(1 for m in self.rows.values() if m.tenant_id == tenant_id and m.is_active)

    async def add(self, membership: TenantMembership) -> TenantMembership:
        self.rows[(membership.tenant_id, membership.user_id)] = membership
        return membership

    async def update(self, membership: TenantMembership) -> TenantMembership:
        return await self.add(membership)


class FakeOrganizationRepository(OrganizationRepository):
    def __init__(self, *organizations: Organization) -> None:
        self.rows: List[Organization] = list(organizations)

    def _for(self, tenant_id: str) -> List[Organization]:
        return [o for o in self.rows if o.tenant_id == tenant_id]

    async def list_for_tenant(self, tenant_id: str, *, page: int = 1, per_page: int = 15) -> Page[Organization]:
        return _page(self._for(tenant_id), page, per_page)

    async def get(self, tenant_id: str, organization_id: UUID) -> Optional[Organization]:
        return next((o for o in self._for(tenant_id) if o.id == organization_id), None)

    async def first_for_tenant(self, tenant_id: str) -> Optional[Organization]:
        orgs = self._for(tenant_id)
        return orgs[0] if orgs else None

    async def add(self, organization: Organization) -> Organization:
        self.rows.append(organization)
        return organization

    async def update(self, organization: Organization) -> Organization:
        return organization

    async def delete(self, organization: Organization) -> None:
        self.rows = [o for o in self.rows if o.id != organization.id]


class FakeTenantRoleRepository(TenantRoleRepository):
    def __init__(self, *roles: TenantRole) -> None:
        self.rows: Dict[UUID, TenantRole] = {r.id: r for r in roles}
        self.assignments: Set[Tuple[str, str, UUID]] = set()

    async def list_for_tenant(self, tenant_id: str) -> List[TenantRole]:
        return [r for r in self.rows.values() if r.tenant_id == tenant_id]

    async def get(self, tenant_id: str, role_id: UUID) -> Optional[TenantRole]:
        role = self.rows.get(role_id)
        return role if role is not None and role.tenant_id == tenant_id else None

    async def name_exists(self, tenant_id: str, name: str, *, exclude_id: Optional[UUID] = None) -> bool:
        return any(r.tenant_id == tenant_id and r.name == name and r.id != exclude_id for r in self.rows.values())

    async def add(self, role: TenantRole) -> TenantRole:
        self.rows[role.id] = role
        return role

    async def update(self, role: TenantRole) -> TenantRole:
        return await self.add(role)

    async def delete(self, role: TenantRole) -> None:
        self.rows.pop(role.id, None)

    async def count_assignments(self, role_id: UUID) -> int:
        return sum(1 for (_, _, rid) in self.assignments if rid == role_id)

    async def assign(self, tenant_id: str, user_id: str, role_id: UUID) -> None:
        self.assignments.add((tenant_id, user_id, role_id))

    async def permissions_for_user(self, tenant_id: str, user_id: str) -> Set[str]:
        names: Set[str] = set()
        for tid, uid, rid in self.assignments:
            if tid == tenant_id and uid == user_id and rid in self.rows:
                names.update(self.rows[rid].permissions)
        return names


# ---------------------------------------------------------------- billing


class FakePlanRepository(PlanRepository):
    def __init__(self, *plans: SubscriptionPlan) -> None:
        self.rows: Dict[UUID, SubscriptionPlan] = {p.id: p for p in plans}

    async def list_public(self, *, plan_type: Optional[PlanType] = None) -> List[SubscriptionPlan]:
        plans = [p for p in self.rows.values() if p.is_public and (plan_type is None or p.type == plan_type)]
        return sorted(plans, key=lambda p: p.display_order)

    async def get(self, plan_id: UUID) -> Optional[SubscriptionPlan]:
        return self.rows.get(plan_id)

    async def add(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        self.rows[plan.id] = plan
        return plan


class FakeSubscriptionRepository(SubscriptionRepository):
    def __init__(self, *subscriptions: Subscription) -> None:
        self.rows: List[Subscription] = list(subscriptions)
        self.updated: List[Subscription] = []

    async def current_for_tenant(self, tenant_id: str) -> Optional[Subscription]:
        current = await self.list_current_for_tenant(tenant_id)
        return current[-1] if current else None

    async def list_current_for_tenant(self, tenant_id: str) -> List[Subscription]:
        return [s for s in self.rows if s.tenant_id == tenant_id and s.is_current]

    async def history_for_tenant(self, tenant_id: str) -> List[Subscription]:
        return list(reversed([s for s in self.rows if s.tenant_id == tenant_id]))

    async def add(self, subscription: Subscription) -> Subscription:
        self.rows.append(subscription)
        return subscription

    async def update(self, subscription: Subscription) -> Subscription:
        self.updated.append(subscription)
        return subscription

    async def due_for_billing(self, now: datetime) -> List[Subscription]:
        return [s for s in self.rows if s.status == SubscriptionStatus.ACTIVE and s.is_due_for_renewal(now)]

    async def expired_without_renewal(self, now: datetime) -> List[Subscription]:
        return [
            s for s in self.rows
            if s.status == SubscriptionStatus.ACTIVE
            and not s.auto_renew
            and s.current_period_end is not None
            and ensure_aware(s.current_period_end) < now
        ]

    async def with_usage(self) -> List[Subscription]:
        return [s for s in self.rows if s.status == SubscriptionStatus.ACTIVE and s.executions_used > 0]


class FakeInvoiceRepository(InvoiceRepository):
    def __init__(self, *invoices: Invoice) -> None:
        self.rows: List[Invoice] = list(invoices)
        self.updated: List[Invoice] = []

    async def list_for_tenant(self, tenant_id: str, *, page: int = 1, per_page: int = 15) -> Page[Invoice]:
        return _page(list(reversed([i for i in self.rows if i.tenant_id == tenant_id])), page, per_page)

    async def get(self, tenant_id: str, invoice_id: UUID) -> Optional[Invoice]:
        return next((i for i in self.rows if i.tenant_id == tenant_id and i.id == invoice_id), None)

    async def add(self, invoice: Invoice) -> Invoice:
        self.rows.append(invoice)
        return invoice

    async def update(self, invoice: Invoice) -> Invoice:
        self.updated.append(invoice)
        return invoice

    async def failed_since(self, since: datetime) -> List[Invoice]:
        return [i for i in self.rows if i.status == InvoiceStatus.FAILED and ensure_aware(i.created_at) >= since]

    async def pending_overdue(self, now: datetime) -> List[Invoice]:
        return [
            i for i in self.rows
            if i.status == InvoiceStatus.PENDING and i.due_date is not None and ensure_aware(i.due_date) < now
        ]

    async def closed_before(self, cutoff: datetime) -> List[Invoice]:
        closed = (InvoiceStatus.PAID, InvoiceStatus.CANCELLED, InvoiceStatus.REFUNDED)
        return [i for i in self.rows if i.status in closed and ensure_aware(i.created_at) < cutoff]


class FakePaymentMethodRepository(PaymentMethodRepository):
    def __init__(self, *methods: PaymentMethod) -> None:
        self.rows: List[PaymentMethod] = list(methods)

    async def list_for_tenant(self, tenant_id: str) -> List[PaymentMethod]:
        return [m for m in self.rows if m.tenant_id == tenant_id]

    async def get(self, tenant_id: str, method_id: UUID) -> Optional[PaymentMethod]:
        return next((m for m in self.rows if m.tenant_id == tenant_id and m.id == method_id), None)

    async def set_default(self, tenant_id: str, method_id: UUID) -> None:
        for m in self.rows:
            if m.tenant_id == tenant_id:
                m.is_default = m.id == method_id


class FakeAgentSubscriptionRepository(AgentSubscriptionRepository):
    def __init__(self, *addons: AgentSubscription) -> None:
        self.rows: List[AgentSubscription] = list(addons)
        self.updated: List[AgentSubscription] = []

    async def active_for_tenant(self, tenant_id: str) -> List[AgentSubscription]:
        return [a for a in self.rows if a.tenant_id == tenant_id and a.is_active]

    async def due_for_renewal(self, now: datetime) -> List[AgentSubscription]:
        return [a for a in self.rows if a.is_active and a.auto_renew and a.is_due(now)]

    async def update(self, subscription: AgentSubscription) -> AgentSubscription:
        self.updated.append(subscription)
        return subscription


# ---------------------------------------------------------------- marketplace


class FakeAgentRepository(AgentRepository):
    def __init__(self, *agents: Agent) -> None:
        self.rows: Dict[UUID, Agent] = {a.id: a for a in agents}

    async def search_active(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 12,
    ) -> Page[Agent]:
        agents = [a for a in self.rows.values() if a.is_active]
        if category:
            agents = [a for a in agents if any(c.slug == category or str(c.id) == category for c in a.categories)]
        if search:
            needle = search.lower()
            agents = [a for a in agents if needle in a.name.lower() or needle in (a.description or "").lower()]
        agents.sort(key=lambda a: (not a.is_featured, a.name))
        return _page(agents, page, per_page)

    async def get(self, agent_id: UUID) -> Optional[Agent]:
        return self.rows.get(agent_id)

    async def add(self, agent: Agent) -> Agent:
        self.rows[agent.id] = agent
        return agent

    async def increment_installs(self, agent_id: UUID, delta: int = 1) -> None:
        agent = self.rows[agent_id]
        agent.total_installs = max(0, agent.total_installs + delta)


class FakeAgentCategoryRepository(AgentCategoryRepository):
    def __init__(self, *categories: AgentCategory) -> None:
        self.rows: List[AgentCategory] = list(categories)

    async def list_active(self) -> List[AgentCategory]:
        return sorted((c for c in self.rows if c.is_active), key=lambda c: (c.display_order, c.name))

    async def add(self, category: AgentCategory) -> AgentCategory:
        self.rows.append(category)
        return category


class FakeAgentEndpointRepository(AgentEndpointRepository):
    def __init__(self, *endpoints: AgentEndpoint) -> None:
        self.rows: List[AgentEndpoint] = list(endpoints)

    async def active_endpoint(self, agent_id: UUID, endpoint_type: EndpointType) -> Optional[AgentEndpoint]:
        return next((e for e in self.rows if e.agent_id == agent_id and e.type == endpoint_type and e.is_active), None)

    async def add(self, endpoint: AgentEndpoint) -> AgentEndpoint:
        self.rows.append(endpoint)
        return endpoint


class FakeAgentRunRepository(AgentRunRepository):
    def __init__(self) -> None:
        self.rows: Dict[UUID, AgentRun] = {}

    async def add(self, run: AgentRun) -> AgentRun:
        self.rows[run.id] = run
        return run

    async def get(self, run_id: UUID, *, tenant_id: Optional[str] = None) -> Optional[AgentRun]:
        run = self.rows.get(run_id)
        if run is None or (tenant_id is not None and run.tenant_id != tenant_id):
            return None
        return run

    async def update(self, run: AgentRun) -> AgentRun:
        self.rows[run.id] = run
        return run


class FakeTenantAgentRepository(TenantAgentRepository):
    def __init__(self, *installations: TenantAgent) -> None:
        self.rows: List[TenantAgent] = list(installations)

    async def list_for_tenant(self, tenant_id: str) -> List[TenantAgent]:
        return [i for i in self.rows if i.tenant_id == tenant_id]

    async def get(self, tenant_id: str, agent_id: UUID) -> Optional[TenantAgent]:
        return next((i for i in self.rows if i.tenant_id == tenant_id and i.agent_id == agent_id), None)

    async def add(self, installation: TenantAgent) -> TenantAgent:
        self.rows.append(installation)
        return installation

    async def update(self, installation: TenantAgent) -> TenantAgent:
        return installation

    async def delete(self, installation: TenantAgent) -> None:
        self.rows = [i for i in self.rows if i.id != installation.id]


class RecordingTrigger(AgentTrigger):
    """Answers with a fixed status code, or raises when ``fail`` is set."""

    def __init__(self, status_code: int = 202, *, fail: bool = False) -> None:
        self.status_code = status_code
        self.fail = fail
        self.calls: List[Dict[str, Any]] = []

    async def trigger(self, url: str, payload: Dict[str, Any], *, headers: Dict[str, str], timeout: float) -> TriggerResponse:
        self.calls.append({"url": url, "payload": payload, "headers": headers, "timeout": timeout})
        if self.fail:
            raise AgentTriggerError("connection refused")
        return TriggerResponse(status_code=self.status_code)


# ---------------------------------------------------------------- console


class FakeImpersonationRepository(ImpersonationRepository):
    def __init__(self) -> None:
        self.rows: Dict[UUID, ImpersonationSession] = {}

    async def add(self, session: ImpersonationSession) -> ImpersonationSession:
        self.rows[session.id] = session
        return session

    async def get(self, session_id: UUID) -> Optional[ImpersonationSession]:
        return self.rows.get(session_id)

    async def find_active_by_token_hash(self, token_hash: str, now: datetime) -> Optional[ImpersonationSession]:
        return next((s for s in self.rows.values() if s.token_hash == token_hash and s.is_active(now)), None)

    async def update(self, session: ImpersonationSession) -> ImpersonationSession:
        if session.id not in self.rows:
            raise LookupError(session.id)
        self.rows[session.id] = session
        return session

    async def search(
        self,
        *,
        now: datetime,
        admin_user_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        status: Optional[ImpersonationStatus] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page[ImpersonationSession]:
        found = [
            s for s in self.rows.values()
            if (admin_user_id is None or s.admin_user_id == admin_user_id)
            and (tenant_id is None or s.tenant_id == tenant_id)
            and (status is None or s.status(now) == status)
        ]
        found.sort(key=lambda s: s.started_at, reverse=True)
        return _page(found, page, per_page)


class FakeTenantDirectory(TenantDirectory):
    """Joins the fake tenant, subscription and plan stores the way the SQL read model does."""

    def __init__(
        self,
        tenants: FakeTenantRepository,
        subscriptions: FakeSubscriptionRepository,
        plans: FakePlanRepository,
    ) -> None:
        self._tenants = tenants
        self._subscriptions = subscriptions
        self._plans = plans

    async def _listing(self, tenant: Tenant) -> TenantListing:
        sub = await self._subscriptions.current_for_tenant(tenant.id)
        plan = await self._plans.get(sub.plan_id) if sub else None
        return TenantListing(tenant=tenant, subscription=sub, plan=plan)

    async def search(self, criteria: TenantSearchCriteria) -> Page[TenantListing]:
        listings = []
        for tenant in self._tenants.rows.values():
            if tenant.deleted_at is not None:
                continue
            if criteria.search and criteria.search.lower() not in tenant.name.lower():
                continue
            if criteria.type is not None and tenant.type != criteria.type:
                continue
            if criteria.status is not None and tenant.status != criteria.status:
                continue
            listing = await self._listing(tenant)
            if criteria.has_subscription is not None and (listing.subscription is not None) != criteria.has_subscription:
                continue
            if criteria.plan_id is not None and (listing.plan is None or listing.plan.id != criteria.plan_id):
                continue
            listings.append(listing)
        listings.sort(key=lambda l: getattr(l.tenant, criteria.sort_by) or "", reverse=criteria.sort_order == "desc")
        return _page(listings, criteria.page, criteria.per_page)

    async def get(self, tenant_id: str) -> Optional[TenantListing]:
        tenant = await self._tenants.get(tenant_id)
        return await self._listing(tenant) if tenant else None

    async def statistics(self, now: datetime) -> TenantStatistics:
        tenants = [t for t in self._tenants.rows.values() if t.deleted_at is None]
        by_type = {t.value: 0 for t in TenantType}
        by_type.update(Counter(t.type.value for t in tenants))
        with_active = 0
        on_trial = 0
        for tenant in tenants:
            sub = await self._subscriptions.current_for_tenant(tenant.id)
            if sub is None:
                continue
            with_active += 1
            if sub.status == SubscriptionStatus.TRIALING and sub.trial_ends_at and ensure_aware(sub.trial_ends_at) > now:
                on_trial += 1
        return TenantStatistics(
            total_tenants=len(tenants),
            by_type=by_type,
            by_status=dict(Counter(t.status.value for t in tenants)),
            with_active_subscription=with_active,
            on_trial=on_trial,
            recent_signups=sum(
                1 for t in tenants if t.created_at and ensure_aware(t.created_at) >= now - timedelta(days=30)
            ),
        )


# ---------------------------------------------------------------- database


class FakeSession:
    """Answers ``SELECT 1`` for health checks; nothing else goes through it."""

    def __init__(self, healthy: bool = True) -> None:
        self.healthy = healthy

    async def execute(self, statement, *args, **kwargs):
        if not self.healthy:
            raise OperationalError(str(statement), None, Exception("connection refused"))
        return None


# ---------------------------------------------------------------- cache


class DownRedis:
    """A ``redis.asyncio`` client whose server went away after connect."""

    def __init__(self) -> None:
        self.calls = 0

    async def _refuse(self, *args, **kwargs):
        self.calls += 1
        raise RedisConnectionError("Connection refused")

    get = set = delete = ping = _refuse

    async def aclose(self) -> None:
        return None
