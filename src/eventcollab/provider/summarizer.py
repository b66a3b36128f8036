"""LiteLLMSummarizer -- 基于 LLM 的合并摘要

以原始事件的标题与时间范围作为上下文，请求一句话摘要。
"""

from eventcollab.core.models import Event

from .client import LiteLLMClient
from .models import ModelCallResult

SYSTEM_PROMPT = (
    "You are an AI assistant that creates concise, one-line summaries of merged "
    "calendar events. Be brief and informative."
)


def build_summary_messages(
    merged_event: Event,
    original_events: list[Event],
) -> list[dict[str, str]]:
    """构造摘要请求 messages"""
    event_details = "\n".join(
        f'Event {i}: "{e.title}" ({e.start_time.isoformat()} - {e.end_time.isoformat()})'
        for i, e in enumerate(original_events, start=1)
    )
    user_prompt = (
        f"Generate a one-line summary for merged events:\n\n{event_details}\n\n"
        f'Merged into: "{merged_event.title}" '
        f"({merged_event.start_time.isoformat()} - {merged_event.end_time.isoformat()})\n\n"
        "Provide a single, concise sentence summarizing the merge."
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


class LiteLLMSummarizer:
    """通过 LiteLLMClient 生成合并摘要"""

    def __init__(
        self,
        client: LiteLLMClient,
        temperature: float = 0.3,
        max_tokens: int | None = 1024,
    ) -> None:
        self._client = client
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def summarize(
        self,
        merged_event: Event,
        original_events: list[Event],
    ) -> ModelCallResult:
        """请求 LLM 生成摘要，错误直接抛出由 FallbackManager 处理"""
        messages = build_summary_messages(merged_event, original_events)
        return await self._client.complete(
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
