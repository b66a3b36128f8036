"""消息总线 payload 模型

线上格式使用 camelCase 字段名，时间字段为 ISO-8601 字符串。
Python 侧通过 snake_case 属性访问（populate_by_name）。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from .event import Event


class MergedData(BaseModel):
    """合并事件快照"""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")


class MergeEventMessage(BaseModel):
    """合并完成后发往 event-merge-requests 的摘要请求消息"""

    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="eventId", description="合并后事件 ID")
    user_id: str = Field(alias="userId", description="发起合并的用户 ID（分区键）")
    merged_event_ids: list[str] = Field(
        default_factory=list,
        alias="mergedEventIds",
        description="被合并的原始事件 ID",
    )
    merged_data: MergedData = Field(alias="mergedData")
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="消息生成时间",
    )

    @classmethod
    def from_merged_event(cls, event: Event, user_id: str) -> "MergeEventMessage":
        """根据合并后的事件构造消息"""
        return cls(
            event_id=event.event_id,
            user_id=user_id,
            merged_event_ids=list(event.merged_from),
            merged_data=MergedData(
                title=event.title,
                start_time=event.start_time.isoformat(),
                end_time=event.end_time.isoformat(),
            ),
        )

    def to_json_bytes(self) -> bytes:
        """序列化为线上格式"""
        return self.model_dump_json(by_alias=True).encode("utf-8")


class BatchProcessingMessage(BaseModel):
    """批量创建完成后发往 event-batch-processing 的通知消息"""

    model_config = ConfigDict(populate_by_name=True)

    batch_id: str = Field(alias="batchId")
    event_count: int = Field(alias="eventCount", ge=0)

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")
