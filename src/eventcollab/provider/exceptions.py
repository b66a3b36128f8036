"""Provider 异常体系

外部摘要调用的所有错误最终都会被降级为本地摘要，不对用户可见。
"""


class ProviderError(Exception):
    """Provider 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试或降级恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class ProxyUnreachableError(ProviderError):
    """LLM 服务不可达（连接失败、超时、DNS 解析失败等）

    此异常触发 FallbackManager 的降级逻辑。
    """

    def __init__(self, endpoint: str, original_error: Exception) -> None:
        """
        Args:
            endpoint: 尝试连接的服务地址或模型名
            original_error: 原始异常
        """
        super().__init__(
            f"LLM 服务不可达: {endpoint} -- {original_error}",
            recoverable=True,
        )
        self.endpoint = endpoint
        self.original_error = original_error


class MalformedResponseError(ProviderError):
    """LLM 返回内容为空或无法解析"""

    def __init__(self, message: str = "LLM 返回内容为空") -> None:
        super().__init__(message, recoverable=True)
