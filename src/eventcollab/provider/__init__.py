"""EventCollab Provider -- 合并摘要 LLM 调用抽象层

packages/provider 的公开接口导出。
"""

# 核心组件
from .client import LiteLLMClient

# 配置
from .config import PLACEHOLDER_API_KEY, ProviderConfig, load_provider_config

# 异常
from .exceptions import MalformedResponseError, ProviderError, ProxyUnreachableError
from .fallback import FallbackManager
from .local_adapter import LocalSummarizer, build_local_summary

# 数据模型
from .models import ModelCallResult, TokenUsage
from .summarizer import LiteLLMSummarizer, build_summary_messages

__all__ = [
    "ModelCallResult",
    "TokenUsage",
    "LiteLLMClient",
    "LiteLLMSummarizer",
    "LocalSummarizer",
    "FallbackManager",
    "build_local_summary",
    "build_summary_messages",
    "ProviderConfig",
    "PLACEHOLDER_API_KEY",
    "load_provider_config",
    "ProviderError",
    "ProxyUnreachableError",
    "MalformedResponseError",
]
