"""EventCollab Core -- 领域模型、冲突检测、链式合并与 SQLite 存储"""

from .conflicts import find_conflicts, overlaps, sort_events
from .merge import group_chain_overlaps, synthesize_merged_event

__all__ = [
    "overlaps",
    "sort_events",
    "find_conflicts",
    "group_chain_overlaps",
    "synthesize_merged_event",
]
