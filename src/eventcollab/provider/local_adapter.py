"""LocalSummarizer -- 本地确定性摘要

无凭证或外部调用失败时的降级后备。
纯函数：相同输入永远得到相同输出，且必定成功。
"""

from eventcollab.core.models import Event

from .models import ModelCallResult


def build_local_summary(merged_event: Event, original_events: list[Event]) -> str:
    """根据合并事件与可加载的原始事件生成确定性摘要

    格式: "Merged {n} overlapping events: {各标题首词，逗号分隔}."
    n 取合并事件记录的来源数量；原始事件已删除时仍能反映真实合并数。
    """
    count = len(merged_event.merged_from) or len(original_events)
    first_words = ", ".join(e.title.split(" ")[0] for e in original_events)
    return f"Merged {count} overlapping events: {first_words}."


class LocalSummarizer:
    """本地摘要适配器，与 LiteLLMSummarizer 接口一致"""

    async def summarize(
        self,
        merged_event: Event,
        original_events: list[Event],
    ) -> ModelCallResult:
        """生成本地摘要

        Args:
            merged_event: 合并后的事件（提供来源数量）
            original_events: 被合并的原始事件

        Returns:
            ModelCallResult，provider="local"
        """
        return ModelCallResult(
            content=build_local_summary(merged_event, original_events),
            model_name="local",
            provider="local",
            duration_ms=0,
            is_fallback=False,  # 由 FallbackManager 按需覆盖
        )
