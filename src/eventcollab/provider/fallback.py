"""FallbackManager -- 降级管理器

Lazy probe 策略：每次调用时先尝试 primary，失败则切换到 fallback。
不维护显式的"降级状态"标记。
"""

import structlog

from eventcollab.core.models import Event

from .exceptions import ProviderError
from .models import ModelCallResult

log = structlog.get_logger()


class FallbackManager:
    """降级管理器

    降级链: LiteLLMSummarizer -> LocalSummarizer
    """

    def __init__(
        self,
        primary,
        fallback=None,
    ) -> None:
        """初始化降级管理器

        Args:
            primary: 主摘要器（LiteLLMSummarizer 或 LocalSummarizer）
            fallback: 降级摘要器（通常为 LocalSummarizer），None 表示无降级
        """
        self._primary = primary
        self._fallback = fallback

    async def summarize_with_fallback(
        self,
        merged_event: Event,
        original_events: list[Event],
    ) -> ModelCallResult:
        """带降级的摘要调用

        Returns:
            ModelCallResult
            - primary 成功: is_fallback=False
            - fallback 成功: is_fallback=True, fallback_reason=<错误描述>

        Raises:
            ProviderError: primary 和 fallback 均失败
        """
        primary_error: Exception | None = None
        try:
            return await self._primary.summarize(merged_event, original_events)
        except Exception as e:
            primary_error = e
            log.warning(
                "primary_failed_attempting_fallback",
                error=str(e),
                error_type=type(e).__name__,
                event_id=merged_event.event_id,
            )

        if self._fallback is None:
            raise ProviderError(
                f"Primary 调用失败且无 fallback 配置: {primary_error}",
                recoverable=False,
            ) from primary_error

        try:
            result = await self._fallback.summarize(merged_event, original_events)
            result = result.model_copy(
                update={
                    "is_fallback": True,
                    "fallback_reason": f"Primary 失败: {primary_error}",
                }
            )
            log.info(
                "fallback_activated",
                fallback_reason=str(primary_error),
                event_id=merged_event.event_id,
            )
            return result
        except Exception as fallback_error:
            log.error(
                "both_primary_and_fallback_failed",
                primary_error=str(primary_error),
                fallback_error=str(fallback_error),
            )
            raise ProviderError(
                f"Primary 和 Fallback 均失败。Primary: {primary_error}; Fallback: {fallback_error}",
                recoverable=False,
            ) from fallback_error
