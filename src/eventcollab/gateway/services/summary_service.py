"""SummaryCacheService -- 合并摘要生成（缓存优先 + 本地降级）

流程：
1. 查缓存 ai-summary:{event_id}，命中直接返回
2. 无有效凭证：生成本地确定性摘要并缓存
3. 有凭证：经 FallbackManager 调用外部 LLM，失败时由 LocalSummarizer 兜底
4. 无论结果来源，均以相同 TTL 写入缓存

同一 key 的并发首次请求通过 per-key 锁合并为一次外部调用。
"""

import asyncio

import structlog
from eventcollab.core.config import SUMMARY_CACHE_KEY_PREFIX, SUMMARY_CACHE_TTL_MS
from eventcollab.core.models import Event
from eventcollab.provider import (
    FallbackManager,
    ProviderConfig,
    build_local_summary,
)

from .summary_cache import SummaryCache

log = structlog.get_logger()


def summary_cache_key(event_id: str) -> str:
    return f"{SUMMARY_CACHE_KEY_PREFIX}{event_id}"


class SummaryCacheService:
    """摘要服务"""

    def __init__(
        self,
        cache: SummaryCache,
        provider_config: ProviderConfig,
        fallback_manager: FallbackManager | None = None,
        ttl_ms: int = SUMMARY_CACHE_TTL_MS,
    ) -> None:
        """
        Args:
            cache: 摘要缓存后端
            provider_config: Provider 配置（决定是否调用外部 LLM）
            fallback_manager: 外部调用降级链；None 时始终使用本地摘要
            ttl_ms: 缓存 TTL（毫秒）
        """
        self._cache = cache
        self._provider_config = provider_config
        self._fallback_manager = fallback_manager
        self._ttl_ms = ttl_ms
        self._key_locks: dict[str, asyncio.Lock] = {}

    @property
    def uses_external_llm(self) -> bool:
        return (
            self._fallback_manager is not None
            and self._provider_config.has_valid_credential()
        )

    async def summarize(
        self,
        merged_event: Event,
        original_events: list[Event],
    ) -> str:
        """生成（或读取缓存的）合并摘要，永不抛出 Provider 异常"""
        key = summary_cache_key(merged_event.event_id)

        cached = await self._cache.get(key)
        if cached:
            log.debug("summary_cache_hit", key=key)
            return cached

        lock = self._key_locks.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                # 等锁期间可能已被其他协程写入
                cached = await self._cache.get(key)
                if cached:
                    log.debug("summary_cache_hit", key=key, after_wait=True)
                    return cached

                summary = await self._generate(merged_event, original_events)
                await self._cache.set(key, summary, self._ttl_ms)
                return summary
        finally:
            if not lock.locked():
                self._key_locks.pop(key, None)

    async def _generate(
        self,
        merged_event: Event,
        original_events: list[Event],
    ) -> str:
        if not self.uses_external_llm:
            log.info(
                "summary_generated_locally",
                event_id=merged_event.event_id,
                reason="no_valid_credential",
            )
            return build_local_summary(merged_event, original_events)

        try:
            result = await self._fallback_manager.summarize_with_fallback(
                merged_event, original_events
            )
        except Exception as e:
            log.warning(
                "summary_generation_failed_using_local",
                event_id=merged_event.event_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return build_local_summary(merged_event, original_events)

        log.info(
            "summary_generated",
            event_id=merged_event.event_id,
            provider=result.provider,
            is_fallback=result.is_fallback,
            duration_ms=result.duration_ms,
        )
        return result.content
