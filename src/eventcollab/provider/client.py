"""LiteLLMClient -- litellm 调用封装

通过 litellm.acompletion() 调用模型（直连 provider 或经 LiteLLM Proxy）。
"""

import time

import httpx
import structlog
from litellm import acompletion

from .exceptions import MalformedResponseError, ProviderError, ProxyUnreachableError
from .models import ModelCallResult, TokenUsage

log = structlog.get_logger()

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 连接类异常类型集合（触发 ProxyUnreachableError，进而触发 FallbackManager 降级）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)


def _is_connection_error(e: Exception) -> bool:
    """判断异常是否为连接类错误"""
    if isinstance(e, _CONNECTION_ERROR_TYPES):
        return True
    # litellm 的 APIConnectionError / Timeout 也属于连接类错误
    error_name = type(e).__name__
    return error_name in ("APIConnectionError", "APITimeoutError", "Timeout")


class LiteLLMClient:
    """litellm 客户端"""

    def __init__(
        self,
        model: str,
        api_key: str = "",
        api_base: str | None = None,
        timeout_s: int = 30,
    ) -> None:
        """初始化客户端

        Args:
            model: litellm 模型名（如 anthropic/claude-3-5-sonnet-20241022）
            api_key: provider 或 Proxy 访问密钥
            api_base: 可选 Proxy 地址，None 表示直连 provider
            timeout_s: 请求超时（秒）
        """
        self._model = model
        self._api_key = api_key
        self._api_base = api_base.rstrip("/") if api_base else None
        self._timeout_s = timeout_s

    @property
    def endpoint(self) -> str:
        return self._api_base or self._model

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ) -> ModelCallResult:
        """发送 chat completion 请求

        Args:
            messages: 消息列表，格式 [{"role": "user", "content": "..."}]
            temperature: 采样温度
            max_tokens: 最大生成 token 数，None 使用模型默认

        Returns:
            ModelCallResult

        Raises:
            ProxyUnreachableError: 连接失败或超时
            MalformedResponseError: 返回内容为空
            ProviderError: 其他调用错误（如模型不可用、配额耗尽）
        """
        start_time = time.monotonic()

        try:
            call_kwargs = {
                "model": self._model,
                "messages": messages,
                "api_key": self._api_key,
                "temperature": temperature,
                "timeout": self._timeout_s,
            }
            if self._api_base:
                call_kwargs["api_base"] = self._api_base
            if max_tokens is not None:
                call_kwargs["max_tokens"] = max_tokens

            log.debug(
                "litellm_call_start",
                model=self._model,
                message_count=len(messages),
            )

            response = await acompletion(**call_kwargs)

            duration_ms = int((time.monotonic() - start_time) * 1000)
            content = self._extract_content(response)

            result = ModelCallResult(
                content=content,
                model_name=getattr(response, "model", "") or self._model,
                provider=self._extract_provider(response),
                duration_ms=duration_ms,
                token_usage=self._parse_usage(response),
            )

            log.info(
                "litellm_call_completed",
                model=result.model_name,
                provider=result.provider,
                duration_ms=duration_ms,
            )

            return result

        except ProviderError:
            # 已包装的异常直接抛出
            raise
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.error(
                "litellm_call_failed",
                model=self._model,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            if _is_connection_error(e):
                raise ProxyUnreachableError(
                    endpoint=self.endpoint,
                    original_error=e,
                ) from e
            raise ProviderError(
                message=f"LLM 调用失败: {e}",
                recoverable=True,
            ) from e

    async def health_check(self) -> bool:
        """检查 LiteLLM Proxy 可达性

        仅在配置了 api_base 时发送 GET {api_base}/health/liveliness；
        直连 provider 时无法探测，返回 True。

        注意: 此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        if not self._api_base:
            return True
        url = f"{self._api_base}/health/liveliness"
        try:
            async with httpx.AsyncClient() as http_client:
                resp = await http_client.get(url, timeout=HEALTH_CHECK_TIMEOUT_S)
                return resp.status_code == 200
        except Exception as e:
            log.debug("health_check_failed", url=url, error=str(e))
            return False

    @staticmethod
    def _extract_content(response) -> str:
        """提取响应文本，结构异常或为空时抛出 MalformedResponseError"""
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"无法解析 LLM 响应: {e}") from e
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError()
        return content.strip()

    @staticmethod
    def _extract_provider(response) -> str:
        hidden = getattr(response, "_hidden_params", None)
        if isinstance(hidden, dict):
            return hidden.get("custom_llm_provider", "") or ""
        return ""

    @staticmethod
    def _parse_usage(response) -> TokenUsage:
        """解析 token 使用数据（失败时返回全零）"""
        usage = getattr(response, "usage", None)
        if usage is None:
            return TokenUsage()
        try:
            return TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            )
        except (TypeError, ValueError) as e:
            log.debug("parse_usage_failed", error=str(e))
            return TokenUsage()
