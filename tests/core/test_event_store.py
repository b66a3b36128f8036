"""SqliteEventStore / SqliteUserStore 单元测试"""

from datetime import UTC, datetime

from eventcollab.core.models import AuditAction


class TestEventStore:
    async def test_insert_and_get_roundtrip(self, store_group, seed_users, seed_events, make_event):
        await seed_users("u1", "u2")
        event = make_event(0, 1, title="Planning", invitee_ids=["u2", "u1"], description="d")
        await seed_events(event)

        loaded = await store_group.event_store.get_event(event.event_id)

        assert loaded == event
        assert loaded.invitee_ids == ["u2", "u1"]

    async def test_get_missing_returns_none(self, store_group):
        assert await store_group.event_store.get_event("nope") is None

    async def test_list_events_for_user_sorted(self, store_group, seed_users, seed_events, make_event):
        await seed_users("u1", "u2")
        late = make_event(5, 6, invitee_ids=["u1"])
        early = make_event(0, 1, invitee_ids=["u1", "u2"])
        other = make_event(2, 3, invitee_ids=["u2"])
        await seed_events(late, early, other)

        events = await store_group.event_store.list_events_for_user("u1")

        assert [e.event_id for e in events] == [early.event_id, late.event_id]
        assert events[0].invitee_ids == ["u1", "u2"]

    async def test_delete_cascades_invitees(self, store_group, seed_users, seed_events, make_event):
        await seed_users("u1")
        event = make_event(0, 1, invitee_ids=["u1"])
        await seed_events(event)

        async with store_group.transaction("delete") as tx:
            deleted = await tx.events.delete_events([event.event_id, "missing"])

        assert deleted == 1
        assert await store_group.event_store.list_events_for_user("u1") == []
        cursor = await store_group.conn.execute("SELECT COUNT(*) FROM event_invitees")
        assert (await cursor.fetchone())[0] == 0

    async def test_update_summary(self, store_group, seed_events, make_event):
        event = make_event(0, 1)
        await seed_events(event)
        now = datetime(2025, 3, 1, tzinfo=UTC)

        async with store_group.transaction("update_summary") as tx:
            assert await tx.events.update_summary(event.event_id, "short summary", now)
            assert not await tx.events.update_summary("missing", "x", now)

        loaded = await store_group.event_store.get_event(event.event_id)
        assert loaded.summary == "short summary"
        assert loaded.updated_at == now


class TestUserStore:
    async def test_find_missing_user_ids_keeps_order(self, store_group, seed_users):
        await seed_users("u1", "u3")
        missing = await store_group.user_store.find_missing_user_ids(["u4", "u1", "u2", "u3"])
        assert missing == ["u4", "u2"]

    async def test_get_user(self, store_group, seed_users):
        await seed_users("u1")
        user = await store_group.user_store.get_user("u1")
        assert user.user_id == "u1"
        assert await store_group.user_store.get_user("u2") is None


class TestAuditStore:
    async def test_list_entries_filters(self, store_group, seed_users, make_event):
        from eventcollab.core.store.transaction import insert_events_batch

        await seed_users("u1")
        async with store_group.transaction("batch") as tx:
            await insert_events_batch(tx, [make_event(0, 1, invitee_ids=["u1"])], user_id="u1")

        entries = await store_group.audit_store.list_entries(user_id="u1")
        assert len(entries) == 1
        assert entries[0].action == AuditAction.BATCH_INSERT
        assert entries[0].metadata["batch_size"] == 1

        merged = await store_group.audit_store.list_entries(action=AuditAction.EVENTS_MERGED)
        assert merged == []
