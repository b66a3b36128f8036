"""链式合并单元测试

验证分组只与组内最后加入的成员比较、合并事件的字段合成规则。
"""

from datetime import UTC, datetime

import pytest
from eventcollab.core import group_chain_overlaps, sort_events, synthesize_merged_event
from eventcollab.core.models import EventStatus


def _ids(groups):
    return [[e.event_id for e in g] for g in groups]


class TestGroupChainOverlaps:
    """链式分组"""

    def test_empty_input(self):
        assert group_chain_overlaps([]) == []

    def test_single_event(self, make_event):
        assert group_chain_overlaps([make_event(0, 1)]) == []

    def test_chain_groups_transitively(self, make_event):
        """A-B 重叠、B-C 重叠、A-C 不重叠时三者同组"""
        a = make_event(0, 2, event_id="a")
        b = make_event(1, 4, event_id="b")
        c = make_event(3, 5, event_id="c")

        assert _ids(group_chain_overlaps([a, b, c])) == [["a", "b", "c"]]

    def test_singletons_discarded(self, make_event):
        a = make_event(0, 2, event_id="a")
        b = make_event(1, 3, event_id="b")
        lone = make_event(5, 6, event_id="lone")
        c = make_event(7, 9, event_id="c")
        d = make_event(8, 10, event_id="d")

        assert _ids(group_chain_overlaps([a, b, lone, c, d])) == [
            ["a", "b"],
            ["c", "d"],
        ]

    def test_touching_events_not_grouped(self, make_event):
        events = [make_event(0, 1), make_event(1, 2), make_event(2, 3)]
        assert group_chain_overlaps(events) == []

    def test_nested_interval_compares_last_added_only(self, make_event):
        """短区间嵌套在长区间内时，后续事件只与短区间比较"""
        outer = make_event(0, 10, event_id="outer")
        inner = make_event(1, 2, event_id="inner")
        later = make_event(5, 6, event_id="later")

        groups = group_chain_overlaps([outer, inner, later])

        assert _ids(groups) == [["outer", "inner"]]

    def test_groups_cover_merged_members_once(self, make_event):
        events = sort_events(
            [
                make_event(0, 2),
                make_event(1, 3),
                make_event(2.5, 4),
                make_event(6, 7),
                make_event(6.5, 8),
            ]
        )
        groups = group_chain_overlaps(events)
        member_ids = [e.event_id for g in groups for e in g]

        assert len(member_ids) == len(set(member_ids))
        assert all(len(g) >= 2 for g in groups)


class TestSynthesizeMergedEvent:
    """合并事件合成"""

    def test_fields(self, make_event):
        a = make_event(
            0, 2, title="Standup daily", event_id="a",
            invitee_ids=["u1", "u2"], description="first",
            status=EventStatus.TODO,
        )
        b = make_event(
            1, 3, title="Review", event_id="b",
            invitee_ids=["u2", "u3"], description=None,
            status=EventStatus.IN_PROGRESS,
        )
        c = make_event(
            2.5, 2.75, title="Sync", event_id="c",
            invitee_ids=["u1"], description="third",
            status=EventStatus.COMPLETED,
        )
        now = datetime(2025, 2, 1, tzinfo=UTC)

        merged = synthesize_merged_event([a, b, c], now=now)

        assert merged.title == "Standup daily + Review + Sync"
        assert merged.description == "first\n\nthird"
        assert merged.status == EventStatus.COMPLETED
        assert merged.start_time == a.start_time
        assert merged.end_time == b.end_time
        assert merged.invitee_ids == ["u1", "u2", "u3"]
        assert merged.merged_from == ["a", "b", "c"]
        assert merged.summary is None
        assert merged.created_at == now
        assert merged.event_id not in {"a", "b", "c"}
        assert len(merged.event_id) == 26  # ULID 长度

    def test_description_none_when_all_empty(self, make_event):
        merged = synthesize_merged_event(
            [make_event(0, 2, description=""), make_event(1, 3)]
        )
        assert merged.description is None

    def test_covers_every_member(self, make_event):
        group = [make_event(0, 2), make_event(1, 5), make_event(4, 4.5)]
        merged = synthesize_merged_event(group)

        for event in group:
            assert merged.start_time <= event.start_time
            assert event.end_time <= merged.end_time

    def test_requires_at_least_two_events(self, make_event):
        with pytest.raises(ValueError):
            synthesize_merged_event([make_event(0, 1)])

    def test_ids_unique_across_calls(self, make_event):
        group = [make_event(0, 2), make_event(1, 3)]
        first = synthesize_merged_event(group)
        second = synthesize_merged_event(group)
        assert first.event_id != second.event_id
