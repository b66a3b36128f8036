"""MergeEventProducer -- 合并/批量完成后的消息发送

消息按 user_id（批量消息按 batch_id）计算分区，保证同一用户的消息顺序。
发送失败抛出 MessagingError，是否吞掉由调用方决定。
"""

import structlog

from eventcollab.core.models import BatchProcessingMessage, MergeEventMessage

from .bus import BusMessage, InProcessMessageBus
from .config import MessagingTopics
from .exceptions import MessagingError
from .partition import partition_for_key

log = structlog.get_logger()


class MergeEventProducer:
    """消息生产者"""

    def __init__(
        self,
        bus: InProcessMessageBus,
        topics: MessagingTopics | None = None,
    ) -> None:
        self._bus = bus
        self._topics = topics or MessagingTopics()

    async def send_merge_event(self, message: MergeEventMessage) -> BusMessage:
        """发送合并摘要请求

        Raises:
            MessagingError: 发送失败
        """
        topic = self._topics.event_merge_requests
        partition = partition_for_key(message.user_id, self._bus.partition_count)
        published = await self._publish(
            topic,
            message.to_json_bytes(),
            key=message.user_id,
            partition=partition,
        )
        log.info(
            "merge_event_sent",
            user_id=message.user_id,
            event_id=message.event_id,
            partition=partition,
        )
        return published

    async def send_batch_processing(self, message: BatchProcessingMessage) -> BusMessage:
        """发送批量创建通知

        Raises:
            MessagingError: 发送失败
        """
        topic = self._topics.event_batch_processing
        published = await self._publish(
            topic,
            message.to_json_bytes(),
            key=message.batch_id,
            partition=partition_for_key(message.batch_id, self._bus.partition_count),
        )
        log.info(
            "batch_processing_sent",
            batch_id=message.batch_id,
            event_count=message.event_count,
        )
        return published

    async def _publish(
        self,
        topic: str,
        value: bytes,
        key: str,
        partition: int,
    ) -> BusMessage:
        try:
            return await self._bus.publish(topic, value, key=key, partition=partition)
        except MessagingError:
            raise
        except Exception as e:
            raise MessagingError(f"failed to publish to {topic}: {e}", topic=topic) from e
