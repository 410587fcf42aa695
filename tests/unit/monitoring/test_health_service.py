from src.monitoring.application.services.health_service import HealthService
from src.shared.infrastructure.cache.redis_client import InMemoryAsyncRedis, RedisClient
from tests.fakes import FakeSession


class UnreachableCache:
    async def ping(self) -> bool:
        return False


def _cache():
    return RedisClient("redis://test", client=InMemoryAsyncRedis())


def test_basic_health():
    body = HealthService(FakeSession(), _cache(), service_name="platform").basic()
    assert body["status"] == "ok"
    assert body["service"] == "platform"
    assert "timestamp" in body


async def test_detailed_health_all_up():
    body = await HealthService(FakeSession(), _cache(), service_name="platform").detailed()
    assert (body["status"], body["database"], body["cache"]) == ("ok", "ok", "ok")


async def test_database_down_degrades():
    body = await HealthService(FakeSession(healthy=False), _cache(), service_name="platform").detailed()
    assert body["status"] == "degraded"
    assert body["database"] == "unavailable"
    assert body["cache"] == "ok"


async def test_cache_down_degrades():
    body = await HealthService(FakeSession(), UnreachableCache(), service_name="platform").detailed()
    assert body["status"] == "degraded"
    assert body["cache"] == "unavailable"
