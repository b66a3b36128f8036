"""AuditEntry Domain Model

审计表 append-only：只允许插入，不允许更新或删除。
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import AuditAction


class AuditEntry(BaseModel):
    """审计记录"""

    entry_id: str = Field(description="唯一标识，ULID 格式")
    action: AuditAction = Field(description="动作类型")
    user_id: str | None = Field(default=None, description="受影响的用户 ID")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="结构化元数据（old_event_ids / new_event_id / merge_count 等）",
    )
    description: str = Field(default="", description="可读描述")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
