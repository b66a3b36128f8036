"""EventCollab Messaging -- 进程内分区消息总线

公开接口导出。
"""

from .bus import BusMessage, InProcessMessageBus
from .config import MessagingConfig, MessagingTopics, load_messaging_config
from .consumer import MessageConsumer
from .exceptions import HandlerRegistrationError, MessagingError
from .partition import partition_for_key, string_hash32
from .producer import MergeEventProducer
from .registry import HandlerRegistry, MessageHandler

__all__ = [
    "BusMessage",
    "InProcessMessageBus",
    "MessagingConfig",
    "MessagingTopics",
    "load_messaging_config",
    "MessageConsumer",
    "MessageHandler",
    "HandlerRegistry",
    "MergeEventProducer",
    "partition_for_key",
    "string_hash32",
    "MessagingError",
    "HandlerRegistrationError",
]
