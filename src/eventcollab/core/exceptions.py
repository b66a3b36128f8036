"""Core 异常体系

NotFound / ValidationFailure / TransactionFailure 三类错误会中止整个操作；
消息发送与摘要生成的错误不在此处定义，由各自模块降级处理。
"""


class EventCollabError(Exception):
    """Core 包基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试或降级恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class UserNotFoundError(EventCollabError):
    """用户不存在"""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User with ID {user_id} not found")
        self.user_id = user_id


class EventNotFoundError(EventCollabError):
    """事件不存在"""

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event with ID {event_id} not found")
        self.event_id = event_id


class EventValidationError(EventCollabError):
    """事件数据非法（如参与者引用了不存在的用户）

    在事务内抛出时整批回滚。
    """

    def __init__(self, message: str, invalid_ids: list[str] | None = None) -> None:
        super().__init__(message)
        self.invalid_ids = invalid_ids or []


class StoreTransactionError(EventCollabError):
    """存储事务提交失败，已整体回滚"""

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的操作名称
            original_error: 原始数据库异常
        """
        super().__init__(f"事务失败并已回滚: {operation} -- {original_error}")
        self.operation = operation
        self.original_error = original_error
