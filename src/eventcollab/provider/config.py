"""ProviderConfig -- 摘要 LLM 配置加载

从环境变量加载配置，不硬编码 API key。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

# 示例配置中的占位 key，视为未配置
PLACEHOLDER_API_KEY = "sk-ant-api03-placeholder"


class ProviderConfig(BaseModel):
    """Provider 包配置 -- 从环境变量加载

    环境变量:
        ANTHROPIC_API_KEY: LLM 访问密钥
        EVENTCOLLAB_LLM_MODEL: litellm 模型名
        LITELLM_PROXY_URL: 可选的 LiteLLM Proxy 地址
        EVENTCOLLAB_LLM_MODE: 运行模式（litellm/local）
        EVENTCOLLAB_LLM_TIMEOUT_S: 调用超时（秒，默认 30）
    """

    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="LLM 访问密钥",
    )
    model: str = Field(
        default="anthropic/claude-3-5-sonnet-20241022",
        description="litellm 模型名",
    )
    api_base: str | None = Field(
        default=None,
        description="可选的 LiteLLM Proxy 基础 URL，None 表示直连 provider",
    )
    llm_mode: Literal["litellm", "local"] = Field(
        default="litellm",
        description="运行模式：litellm / local（仅使用本地确定性摘要）",
    )
    timeout_s: int = Field(
        default=30,
        ge=1,
        description="LLM 调用超时（秒）",
    )
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=1)

    def has_valid_credential(self) -> bool:
        """是否具备调用外部 LLM 的有效凭证"""
        if self.llm_mode != "litellm":
            return False
        key = self.api_key.get_secret_value().strip()
        return bool(key) and key != PLACEHOLDER_API_KEY


def load_provider_config() -> ProviderConfig:
    """从环境变量加载 Provider 配置

    环境变量映射:
        ANTHROPIC_API_KEY -> api_key (默认 "")
        EVENTCOLLAB_LLM_MODEL -> model
        LITELLM_PROXY_URL -> api_base (默认 None)
        EVENTCOLLAB_LLM_MODE -> llm_mode (默认 "litellm")
        EVENTCOLLAB_LLM_TIMEOUT_S -> timeout_s (默认 30)

    Returns:
        ProviderConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("ANTHROPIC_API_KEY"):
        kwargs["api_key"] = SecretStr(val)

    if val := os.environ.get("EVENTCOLLAB_LLM_MODEL"):
        kwargs["model"] = val

    if val := os.environ.get("LITELLM_PROXY_URL"):
        kwargs["api_base"] = val

    if val := os.environ.get("EVENTCOLLAB_LLM_MODE"):
        if val in ("litellm", "local"):
            kwargs["llm_mode"] = val
        else:
            log.warning(
                "invalid_llm_mode_config",
                env_var="EVENTCOLLAB_LLM_MODE",
                value=val,
                fallback="litellm",
            )

    if val := os.environ.get("EVENTCOLLAB_LLM_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="EVENTCOLLAB_LLM_TIMEOUT_S",
                value=val,
                fallback=30,
            )
            # 使用默认值，不阻塞启动

    return ProviderConfig(**kwargs)
