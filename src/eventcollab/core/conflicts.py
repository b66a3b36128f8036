"""冲突检测 -- 找出用户事件中所有存在时间重叠的事件

区间语义为半开区间 [start, end)：首尾相接（a.end == b.start）不算重叠。

复杂度：对排序后的事件做两两比较，O(n²)。单个用户的事件数量很小，
保留两两比较以得到"首次出现顺序"的稳定输出；若需支持大规模输入，
可改为只与当前最大 end_time 比较的扫描线算法。
"""

from collections.abc import Iterable

from .models.event import Event


def overlaps(a: Event, b: Event) -> bool:
    """两个事件是否重叠（对称）"""
    return a.start_time < b.end_time and b.start_time < a.end_time


def sort_events(events: Iterable[Event]) -> list[Event]:
    """按 start_time 正序排序，start_time 相同时按 event_id 排序保证确定性"""
    return sorted(events, key=lambda e: (e.start_time, e.event_id))


def find_conflicts(events: Iterable[Event]) -> list[Event]:
    """返回至少参与一次重叠的事件

    Args:
        events: 同一用户的全部事件（任意顺序）

    Returns:
        冲突事件列表，按两两扫描中首次出现的顺序，每个 event_id 至多出现一次
    """
    ordered = sort_events(events)
    conflicts: list[Event] = []
    seen: set[str] = set()

    for i, first in enumerate(ordered):
        for second in ordered[i + 1 :]:
            if not overlaps(first, second):
                continue
            for event in (first, second):
                if event.event_id not in seen:
                    seen.add(event.event_id)
                    conflicts.append(event)

    return conflicts
