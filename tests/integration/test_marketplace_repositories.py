from src.marketplace.domain.entities.agent import Agent, AgentCategory
from src.marketplace.infrastructure.repositories.agent_repository_impl import (
    AgentCategoryRepositoryImpl,
    AgentRepositoryImpl,
)


async def _catalog(session):
    categories = AgentCategoryRepositoryImpl(session)
    support = await categories.add(AgentCategory(name="Support", slug="support"))
    sales = await categories.add(AgentCategory(name="Sales", slug="sales"))
    agents = AgentRepositoryImpl(session)
    await agents.add(Agent(name="Triage Bot", slug="triage", description="Routes tickets", categories=[support]))
    await agents.add(
        Agent(name="Answer Bot", slug="answer", description="100% accurate replies", categories=[support])
    )
    await agents.add(Agent(name="Closer", slug="closer", is_featured=True, categories=[sales, support]))
    await agents.add(Agent(name="Retired", slug="retired", is_active=False, categories=[support]))
    return agents, support, sales


async def test_search_active_puts_featured_first_then_name(session):
    agents, _, _ = await _catalog(session)

    page = await agents.search_active()

    assert [a.slug for a in page.items] == ["closer", "answer", "triage"]
    assert page.total == 3


async def test_search_active_category_by_slug_or_id(session):
    agents, support, sales = await _catalog(session)

    by_slug = await agents.search_active(category="sales")
    by_id = await agents.search_active(category=str(support.id))

    assert [a.slug for a in by_slug.items] == ["closer"]
    assert [a.slug for a in by_id.items] == ["closer", "answer", "triage"]
    assert {c.slug for c in by_slug.items[0].categories} == {"sales", "support"}
    assert (await agents.search_active(category="unknown")).total == 0


async def test_search_active_matches_name_or_description(session):
    agents, _, _ = await _catalog(session)

    assert [a.slug for a in (await agents.search_active(search="TICKETS")).items] == ["triage"]
    assert [a.slug for a in (await agents.search_active(search="bot")).items] == ["answer", "triage"]


async def test_search_active_treats_like_wildcards_literally(session):
    agents, _, _ = await _catalog(session)

    assert [a.slug for a in (await agents.search_active(search="100%")).items] == ["answer"]
    assert (await agents.search_active(search="%")).total == 1
    assert (await agents.search_active(search="r_b")).total == 0


async def test_search_active_pages(session):
    agents, _, _ = await _catalog(session)

    second = await agents.search_active(page=2, per_page=2)

    assert [a.slug for a in second.items] == ["triage"]
    assert second.total == 3
