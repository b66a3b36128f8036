"""HandlerRegistry -- topic -> handler 注册表

启动阶段注册，consumer 启动时冻结，运行期间不变。
"""

from typing import Protocol

import structlog

from .bus import BusMessage
from .exceptions import HandlerRegistrationError

log = structlog.get_logger()


class MessageHandler(Protocol):
    """消息处理器接口"""

    async def handle(self, message: BusMessage) -> None:
        """处理单条消息"""
        ...


class HandlerRegistry:
    """topic -> handler 注册表，每个 topic 至多一个 handler"""

    def __init__(self) -> None:
        self._handlers: dict[str, MessageHandler] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, topic: str, handler: MessageHandler) -> None:
        """注册 handler

        Raises:
            HandlerRegistrationError: 已冻结或 topic 已有 handler
        """
        if self._frozen:
            raise HandlerRegistrationError(
                "registry is frozen; register handlers before the consumer starts",
                topic=topic,
            )
        if topic in self._handlers:
            raise HandlerRegistrationError(
                f"handler already registered for topic {topic}",
                topic=topic,
            )
        self._handlers[topic] = handler
        log.info("message_handler_registered", topic=topic, handler=type(handler).__name__)

    def freeze(self) -> None:
        """冻结注册表（重复调用无副作用）"""
        self._frozen = True

    def get(self, topic: str) -> MessageHandler | None:
        """按 topic 查询 handler"""
        return self._handlers.get(topic)

    def topics(self) -> list[str]:
        """已注册 handler 的 topic 列表"""
        return sorted(self._handlers)
