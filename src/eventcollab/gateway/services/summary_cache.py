"""SummaryCache -- 合并摘要缓存后端

两种实现：
- InMemorySummaryCache: 进程内字典 + 单调时钟 TTL（默认）
- RedisSummaryCache: redis.asyncio，SET key value PX ttl

写入语义均为 last-write-wins。
"""

import time
from collections.abc import Callable
from typing import Protocol

import redis.asyncio as redis
import structlog
from eventcollab.core.config import get_cache_backend, get_redis_url

log = structlog.get_logger()


class SummaryCache(Protocol):
    """摘要缓存接口"""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_ms: int) -> None: ...

    async def close(self) -> None: ...


class InMemorySummaryCache:
    """进程内摘要缓存"""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # key -> (value, 过期时刻)
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_ms: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_ms / 1000)

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisSummaryCache:
    """Redis 摘要缓存"""

    def __init__(
        self,
        redis_url: str | None = None,
        client: redis.Redis | None = None,
        socket_timeout: float = 5.0,
    ) -> None:
        """
        Args:
            redis_url: Redis 连接地址，默认读取 REDIS_URL
            client: 已创建的 Redis 客户端（测试注入）
            socket_timeout: 读写超时（秒）
        """
        self.redis_url = redis_url or get_redis_url()
        self._client = client or redis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    async def get(self, key: str) -> str | None:
        value = await self._client.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_ms: int) -> None:
        await self._client.set(key, value, px=ttl_ms)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            log.debug("redis_ping_failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()


def create_summary_cache(backend: str | None = None) -> SummaryCache:
    """按配置创建缓存后端（memory / redis），未知值回退到 memory"""
    backend = backend or get_cache_backend()
    if backend == "redis":
        cache = RedisSummaryCache()
        log.info("summary_cache_initialized", backend="redis", redis_url=cache.redis_url)
        return cache
    if backend != "memory":
        log.warning("invalid_cache_backend_config", value=backend, fallback="memory")
    log.info("summary_cache_initialized", backend="memory")
    return InMemorySummaryCache()
