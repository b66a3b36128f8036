"""Messaging 异常体系

消息发送与处理失败均不回滚已提交的合并，由调用方记录日志后吞掉。
"""


class MessagingError(Exception):
    """Messaging 包基础异常"""

    def __init__(self, message: str, topic: str | None = None) -> None:
        """
        Args:
            message: 错误描述
            topic: 相关 topic
        """
        super().__init__(message)
        self.topic = topic


class HandlerRegistrationError(MessagingError):
    """handler 注册非法（重复注册或在 consumer 启动后注册）"""
