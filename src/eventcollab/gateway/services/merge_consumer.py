"""MergeSummaryHandler -- event-merge-requests 消息处理

解析消息 -> 加载合并事件 -> 加载原始事件 -> 生成摘要 -> 回填 summary。
失败只记录日志，不重试。
"""

from datetime import UTC, datetime

import structlog
from eventcollab.core.models import MergeEventMessage
from eventcollab.core.store import StoreGroup
from eventcollab.messaging import BusMessage
from pydantic import ValidationError

from .summary_service import SummaryCacheService

log = structlog.get_logger()


class MergeSummaryHandler:
    """合并摘要回填 handler"""

    def __init__(
        self,
        store_group: StoreGroup,
        summary_service: SummaryCacheService,
    ) -> None:
        self._stores = store_group
        self._summary_service = summary_service

    async def handle(self, message: BusMessage) -> None:
        if not message.value:
            log.error("merge_message_empty", partition=message.partition, offset=message.offset)
            return

        try:
            payload = MergeEventMessage.model_validate_json(message.value)
        except ValidationError as e:
            log.error(
                "merge_message_invalid",
                partition=message.partition,
                offset=message.offset,
                error=str(e),
            )
            return

        log.info(
            "merge_message_processing",
            user_id=payload.user_id,
            event_id=payload.event_id,
        )

        # 合并事务提交前不可读取，避免看到随后回滚的数据
        async with self._stores.read_scope() as stores:
            merged = await stores.event_store.get_event(payload.event_id)
            # 原始事件通常已在合并事务中删除，无法加载时以合并事件自身为上下文
            originals = (
                await stores.event_store.get_events(merged.merged_from)
                if merged is not None
                else []
            )

        if merged is None:
            log.error("merged_event_not_found", event_id=payload.event_id)
            return
        if not originals:
            originals = [merged]

        summary = await self._summary_service.summarize(merged, originals)

        async with self._stores.transaction("update_summary") as tx:
            updated = await tx.events.update_summary(
                merged.event_id, summary, datetime.now(UTC)
            )

        if not updated:
            log.warning("summary_update_skipped", event_id=merged.event_id)
            return

        log.info(
            "merge_summary_stored",
            event_id=merged.event_id,
            summary=summary,
        )
