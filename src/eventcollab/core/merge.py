"""合并引擎（纯函数部分）-- 链式分组 + 合并事件合成

链式分组：遍历排序后的事件，每个事件只与当前组中"最后加入"的成员比较，
重叠则加入，否则关闭当前组并以该事件开启新组。因此 A 与 C 不直接重叠时，
仍可能经由 B 合并到同一组；组内成员不保证两两重叠。

注意：这里刻意不跟踪组内最大 end_time。一个短区间嵌套在长区间内、
其后的事件只与长区间重叠时，两者会被拆分到不同组。
"""

from datetime import UTC, datetime

from ulid import ULID

from .config import MERGE_DESCRIPTION_SEPARATOR, MERGE_TITLE_SEPARATOR
from .conflicts import overlaps
from .models.event import Event


def group_chain_overlaps(sorted_events: list[Event]) -> list[list[Event]]:
    """将已排序事件切分为链式重叠组，仅返回成员数 >= 2 的组

    Args:
        sorted_events: 已按 (start_time, event_id) 排序的事件

    Returns:
        可合并组列表，组内保持输入顺序
    """
    if not sorted_events:
        return []

    groups: list[list[Event]] = []
    current: list[Event] = [sorted_events[0]]

    for event in sorted_events[1:]:
        if overlaps(current[-1], event):
            current.append(event)
            continue
        if len(current) > 1:
            groups.append(current)
        current = [event]

    if len(current) > 1:
        groups.append(current)

    return groups


def synthesize_merged_event(group: list[Event], now: datetime | None = None) -> Event:
    """由合并组合成一条合并事件

    - start_time / end_time: 组内最早开始 / 最晚结束
    - title: 按组内顺序拼接
    - description: 非空描述以空行拼接，全部为空时为 None
    - status: 组内最后一个成员的状态
    - invitee_ids: 参与者并集（首次出现顺序）
    - merged_from: 组内成员 ID（组内顺序）
    """
    if len(group) < 2:
        raise ValueError("合并组至少需要 2 个事件")

    now = now or datetime.now(UTC)

    invitee_ids: list[str] = []
    seen: set[str] = set()
    for event in group:
        for user_id in event.invitee_ids:
            if user_id not in seen:
                seen.add(user_id)
                invitee_ids.append(user_id)

    descriptions = [e.description for e in group if e.description]

    return Event(
        event_id=str(ULID()),
        title=MERGE_TITLE_SEPARATOR.join(e.title for e in group),
        description=MERGE_DESCRIPTION_SEPARATOR.join(descriptions) or None,
        status=group[-1].status,
        start_time=min(e.start_time for e in group),
        end_time=max(e.end_time for e in group),
        invitee_ids=invitee_ids,
        merged_from=[e.event_id for e in group],
        created_at=now,
        updated_at=now,
    )
