"""EventCollab Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .audit import AuditEntry
from .enums import AuditAction, EventStatus
from .event import Event, EventCreate, ensure_utc
from .message import BatchProcessingMessage, MergedData, MergeEventMessage
from .user import User

__all__ = [
    # 枚举
    "EventStatus",
    "AuditAction",
    # Event
    "Event",
    "EventCreate",
    "ensure_utc",
    # Audit
    "AuditEntry",
    # User
    "User",
    # Messages
    "MergeEventMessage",
    "MergedData",
    "BatchProcessingMessage",
]
