"""Event Domain Model

事件是一个带标题、状态、参与者的时间区间 [start_time, end_time)。
由直接写入或合并产生；被合并后删除，其 ID 记录在后继事件的 merged_from 中。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import EventStatus


def ensure_utc(value: datetime) -> datetime:
    """统一转换为带时区的 UTC 时间，naive 时间按 UTC 解释"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Event(BaseModel):
    """Event 数据模型

    不变量：start_time < end_time；invitee_ids 不含重复项。
    summary 由异步摘要流程回填，创建时为空。
    """

    event_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(min_length=1, description="事件标题")
    description: str | None = Field(default=None, description="事件描述")
    status: EventStatus = Field(default=EventStatus.TODO, description="事件状态")
    start_time: datetime = Field(description="开始时间（UTC）")
    end_time: datetime = Field(description="结束时间（UTC）")
    invitee_ids: list[str] = Field(default_factory=list, description="参与者 user_id 列表")
    merged_from: list[str] = Field(
        default_factory=list,
        description="被合并的前驱事件 ID（按合并组顺序），非合并产物为空",
    )
    summary: str | None = Field(default=None, description="异步生成的合并摘要")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("invitee_ids")
    @classmethod
    def _unique_invitees(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("invitee_ids 不允许重复")
        return value

    @model_validator(mode="after")
    def _check_interval(self) -> "Event":
        if self.start_time >= self.end_time:
            raise ValueError("start_time 必须早于 end_time")
        return self

    @property
    def is_merged(self) -> bool:
        """是否由合并产生"""
        return bool(self.merged_from)


class EventCreate(BaseModel):
    """事件创建请求（批量创建的单项）"""

    title: str = Field(min_length=1)
    description: str | None = None
    status: EventStatus = EventStatus.TODO
    start_time: datetime
    end_time: datetime
    invitee_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_interval(self) -> "EventCreate":
        if ensure_utc(self.start_time) >= ensure_utc(self.end_time):
            raise ValueError("start_time 必须早于 end_time")
        return self

    def to_event(self, event_id: str, now: datetime) -> Event:
        """生成待写入的 Event，参与者去重并保持顺序"""
        return Event(
            event_id=event_id,
            title=self.title,
            description=self.description,
            status=self.status,
            start_time=self.start_time,
            end_time=self.end_time,
            invitee_ids=list(dict.fromkeys(self.invitee_ids)),
            created_at=now,
            updated_at=now,
        )
