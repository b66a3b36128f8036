"""全局 pytest 配置 -- 临时 SQLite StoreGroup + 事件构造工厂"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from eventcollab.core.models import Event, EventStatus, User
from eventcollab.core.store import StoreGroup, create_store_group

# 测试基准时间：2025-01-15 09:00 UTC
T0 = datetime(2025, 1, 15, 9, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供已初始化的临时 StoreGroup"""
    sg = await create_store_group(str(tmp_db_path))
    yield sg
    await sg.conn.close()


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """事件工厂：start/end 以相对 T0 的小时数表示"""
    counter = {"n": 0}

    def _make(
        start_h: float,
        end_h: float,
        title: str | None = None,
        event_id: str | None = None,
        invitee_ids: list[str] | None = None,
        description: str | None = None,
        status: EventStatus = EventStatus.TODO,
    ) -> Event:
        counter["n"] += 1
        n = counter["n"]
        return Event(
            event_id=event_id or f"evt-{n:03d}",
            title=title or f"Event {n}",
            description=description,
            status=status,
            start_time=T0 + timedelta(hours=start_h),
            end_time=T0 + timedelta(hours=end_h),
            invitee_ids=invitee_ids if invitee_ids is not None else [],
        )

    return _make


@pytest_asyncio.fixture
async def seed_users(store_group: StoreGroup) -> Callable:
    """写入用户并提交"""

    async def _seed(*user_ids: str) -> None:
        async with store_group.transaction("seed_users") as tx:
            for user_id in user_ids:
                await tx.users.create_user(User(user_id=user_id, name=user_id))

    return _seed


@pytest_asyncio.fixture
async def seed_events(store_group: StoreGroup) -> Callable:
    """直接写入事件（不经过业务校验）并提交"""

    async def _seed(*events: Event) -> None:
        async with store_group.transaction("seed_events") as tx:
            for event in events:
                await tx.events.insert_event(event)

    return _seed
