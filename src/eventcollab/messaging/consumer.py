"""MessageConsumer -- 分区消费与 topic 分发

每个 (topic, partition) 一个后台 worker，分区内顺序处理，分区间并发。
无 handler 的 topic 消息直接丢弃；handler 异常记录日志后继续处理下一条，
不重试、不进入死信队列。
"""

import asyncio

import structlog

from .bus import BusMessage, InProcessMessageBus
from .registry import HandlerRegistry

log = structlog.get_logger()


class MessageConsumer:
    """消息消费者"""

    def __init__(
        self,
        bus: InProcessMessageBus,
        registry: HandlerRegistry,
        topics: list[str],
        group_id: str = "event-processors",
    ) -> None:
        self._bus = bus
        self._registry = registry
        self._topics = list(dict.fromkeys(topics))
        self._group_id = group_id
        self._workers: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._workers)

    async def start(self) -> None:
        """冻结注册表并启动所有分区 worker（重复调用无副作用）"""
        if self._workers:
            return
        self._registry.freeze()
        for topic in self._topics:
            for partition in range(self._bus.partition_count):
                task = asyncio.create_task(
                    self._run_partition(topic, partition),
                    name=f"consumer:{self._group_id}:{topic}:{partition}",
                )
                self._workers.append(task)
        log.info(
            "message_consumer_started",
            group_id=self._group_id,
            topics=self._topics,
            partitions=self._bus.partition_count,
        )

    async def stop(self) -> None:
        """停止所有 worker"""
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        log.info("message_consumer_stopped", group_id=self._group_id)

    async def _run_partition(self, topic: str, partition: int) -> None:
        queue = self._bus.queue(topic, partition)
        while True:
            message: BusMessage = await queue.get()
            try:
                await self._dispatch(message)
            finally:
                queue.task_done()

    async def _dispatch(self, message: BusMessage) -> None:
        """按 topic 分发到 handler"""
        handler = self._registry.get(message.topic)
        if handler is None:
            log.debug(
                "message_dropped_no_handler",
                topic=message.topic,
                partition=message.partition,
                offset=message.offset,
            )
            return

        try:
            await handler.handle(message)
        except Exception as e:
            log.error(
                "message_handler_failed",
                topic=message.topic,
                partition=message.partition,
                offset=message.offset,
                error=str(e),
                error_type=type(e).__name__,
            )
