from src.shared.infrastructure.cache.cache_protocol import JsonCache
from src.shared.infrastructure.cache.redis_client import InMemoryAsyncRedis, RedisClient

__all__ = ["JsonCache", "RedisClient", "InMemoryAsyncRedis"]
