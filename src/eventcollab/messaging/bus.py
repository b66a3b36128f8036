"""InProcessMessageBus -- 进程内分区消息总线

每个 topic 固定 partition_count 个分区，每个分区是一个 asyncio.Queue。
同一分区内的消息按发布顺序被顺序消费；不同分区之间互不保证顺序。
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from .exceptions import MessagingError
from .partition import partition_for_key

log = structlog.get_logger()


@dataclass(frozen=True)
class BusMessage:
    """总线上的单条消息"""

    topic: str
    partition: int
    offset: int
    value: bytes
    key: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class InProcessMessageBus:
    """进程内消息总线 -- 基于 asyncio.Queue 的分区发布/订阅"""

    def __init__(self, partition_count: int = 3, queue_maxsize: int = 1000) -> None:
        if partition_count < 1:
            raise ValueError("partition_count 必须 >= 1")
        self._partition_count = partition_count
        self._queue_maxsize = queue_maxsize
        # topic -> 分区队列列表
        self._partitions: dict[str, list[asyncio.Queue]] = {}
        # (topic, partition) -> 下一个 offset
        self._offsets: dict[tuple[str, int], int] = {}
        self._closed = False

    @property
    def partition_count(self) -> int:
        return self._partition_count

    @property
    def closed(self) -> bool:
        return self._closed

    def queue(self, topic: str, partition: int) -> asyncio.Queue:
        """获取指定分区队列（topic 首次使用时创建）"""
        queues = self._partitions.get(topic)
        if queues is None:
            queues = [
                asyncio.Queue(maxsize=self._queue_maxsize)
                for _ in range(self._partition_count)
            ]
            self._partitions[topic] = queues
        return queues[partition]

    async def publish(
        self,
        topic: str,
        value: bytes,
        key: str | None = None,
        partition: int | None = None,
    ) -> BusMessage:
        """发布消息

        Args:
            topic: 目标 topic
            value: 消息体
            key: 分区键；未显式指定 partition 时用于计算分区
            partition: 显式分区号

        Returns:
            已入队的 BusMessage

        Raises:
            MessagingError: 总线已关闭、分区号越界或分区队列已满
        """
        if self._closed:
            raise MessagingError("message bus is closed", topic=topic)

        if partition is None:
            partition = partition_for_key(key, self._partition_count) if key else 0
        if not 0 <= partition < self._partition_count:
            raise MessagingError(
                f"partition {partition} out of range [0, {self._partition_count})",
                topic=topic,
            )

        queue = self.queue(topic, partition)
        offset = self._offsets.get((topic, partition), 0)
        message = BusMessage(
            topic=topic,
            partition=partition,
            offset=offset,
            value=value,
            key=key,
        )
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull as e:
            raise MessagingError(
                f"partition {partition} is full (maxsize={self._queue_maxsize})",
                topic=topic,
            ) from e

        self._offsets[(topic, partition)] = offset + 1
        log.debug(
            "message_published",
            topic=topic,
            partition=partition,
            offset=offset,
            key=key,
        )
        return message

    async def join(self) -> None:
        """等待所有已发布消息被消费完成"""
        for queues in list(self._partitions.values()):
            for queue in queues:
                await queue.join()

    def close(self) -> None:
        """关闭总线，之后的 publish 将失败"""
        self._closed = True
