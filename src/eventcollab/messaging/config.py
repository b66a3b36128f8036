"""MessagingConfig -- 消息总线配置加载"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


class MessagingTopics(BaseModel):
    """topic 名称"""

    event_merge_requests: str = "event-merge-requests"
    event_batch_processing: str = "event-batch-processing"
    event_notifications: str = "event-notifications"

    def all(self) -> list[str]:
        return [
            self.event_merge_requests,
            self.event_batch_processing,
            self.event_notifications,
        ]


class MessagingConfig(BaseModel):
    """消息总线配置

    环境变量:
        EVENTCOLLAB_CLIENT_ID: 客户端标识
        EVENTCOLLAB_CONSUMER_GROUP: 消费组
        EVENTCOLLAB_PARTITION_COUNT: 每个 topic 的分区数（默认 3）
        EVENTCOLLAB_QUEUE_MAXSIZE: 单分区队列容量（0 表示不限）
    """

    client_id: str = Field(default="event-collaboration-api")
    consumer_group: str = Field(default="event-processors")
    partition_count: int = Field(default=3, ge=1, description="每个 topic 的分区数")
    queue_maxsize: int = Field(default=1000, ge=0, description="单分区队列容量")
    topics: MessagingTopics = Field(default_factory=MessagingTopics)


def _int_env(name: str, default: int) -> int | None:
    val = os.environ.get(name)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        log.warning("invalid_int_config", env_var=name, value=val, fallback=default)
        return None


def load_messaging_config() -> MessagingConfig:
    """从环境变量加载消息总线配置"""
    kwargs: dict = {}

    if val := os.environ.get("EVENTCOLLAB_CLIENT_ID"):
        kwargs["client_id"] = val

    if val := os.environ.get("EVENTCOLLAB_CONSUMER_GROUP"):
        kwargs["consumer_group"] = val

    if (count := _int_env("EVENTCOLLAB_PARTITION_COUNT", 3)) is not None:
        kwargs["partition_count"] = count

    if (maxsize := _int_env("EVENTCOLLAB_QUEUE_MAXSIZE", 1000)) is not None:
        kwargs["queue_maxsize"] = maxsize

    return MessagingConfig(**kwargs)
