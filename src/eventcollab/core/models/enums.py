"""枚举定义 -- EventStatus 与 AuditAction"""

from enum import StrEnum


class EventStatus(StrEnum):
    """事件状态"""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class AuditAction(StrEnum):
    """审计动作类型

    审计表 append-only，每条记录对应一次改变状态的操作。
    """

    EVENT_CREATED = "EVENT_CREATED"
    EVENT_UPDATED = "EVENT_UPDATED"
    EVENT_DELETED = "EVENT_DELETED"
    EVENTS_MERGED = "EVENTS_MERGED"
    BATCH_INSERT = "BATCH_INSERT"
