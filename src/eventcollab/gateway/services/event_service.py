"""EventService -- 冲突检测 / 合并 / 批量创建业务逻辑

合并流程：
1. 校验用户存在
2. 在同一事务内：读取用户事件 -> 排序 -> 链式分组 -> 逐组写入合并事件、
   删除原始事件、追加 EVENTS_MERGED 审计
3. 提交后逐条发送 MergeEventMessage（失败只记录日志）
"""

import asyncio
from datetime import UTC, datetime

import structlog
from eventcollab.core import (
    find_conflicts,
    group_chain_overlaps,
    sort_events,
    synthesize_merged_event,
)
from eventcollab.core.config import BATCH_MAX_EVENTS
from eventcollab.core.exceptions import EventValidationError, UserNotFoundError
from eventcollab.core.models import (
    BatchProcessingMessage,
    Event,
    EventCreate,
    MergeEventMessage,
)
from eventcollab.core.store import StoreGroup
from eventcollab.core.store.transaction import (
    insert_events_batch,
    replace_events_with_merged,
)
from eventcollab.messaging import MergeEventProducer
from ulid import ULID

log = structlog.get_logger()


class EventService:
    """事件业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        producer: MergeEventProducer | None = None,
    ) -> None:
        self._stores = store_group
        self._producer = producer
        # user_id -> 合并锁；计数为持有或等待该锁的调用数，归零时移除
        self._user_locks: dict[str, asyncio.Lock] = {}
        self._user_lock_refs: dict[str, int] = {}

    async def _load_user_events(self, user_id: str) -> list[Event]:
        """在读锁内校验用户并读取其事件，只返回已提交数据

        Raises:
            UserNotFoundError: 用户不存在
        """
        async with self._stores.read_scope() as stores:
            if await stores.user_store.get_user(user_id) is None:
                raise UserNotFoundError(user_id)
            return await stores.event_store.list_events_for_user(user_id)

    async def list_user_events(self, user_id: str) -> list[Event]:
        """查询用户参与的所有事件，按开始时间排序"""
        return sort_events(await self._load_user_events(user_id))

    async def find_conflicts(self, user_id: str) -> list[Event]:
        """查询用户的冲突事件（只读）

        Raises:
            UserNotFoundError: 用户不存在
        """
        events = await self._load_user_events(user_id)
        conflicts = find_conflicts(events)
        log.info(
            "conflicts_found",
            user_id=user_id,
            event_count=len(events),
            conflict_count=len(conflicts),
        )
        return conflicts

    async def merge_all(self, user_id: str) -> list[Event]:
        """合并用户所有链式重叠的事件组

        Returns:
            新生成的合并事件（按组顺序），无可合并组时为空列表

        Raises:
            UserNotFoundError: 用户不存在
            EventValidationError: 合并事件的参与者引用了不存在的用户（整体回滚）
            StoreTransactionError: 存储事务失败（整体回滚）
        """
        async with self._stores.read_scope() as stores:
            if await stores.user_store.get_user(user_id) is None:
                raise UserNotFoundError(user_id)

        lock = self._user_locks.setdefault(user_id, asyncio.Lock())
        self._user_lock_refs[user_id] = self._user_lock_refs.get(user_id, 0) + 1
        try:
            async with lock:
                merged_events = await self._merge_in_transaction(user_id)
        finally:
            self._user_lock_refs[user_id] -= 1
            if self._user_lock_refs[user_id] == 0:
                del self._user_lock_refs[user_id]
                del self._user_locks[user_id]

        for merged in merged_events:
            await self._send_merge_event(merged, user_id)

        return merged_events

    async def _merge_in_transaction(self, user_id: str) -> list[Event]:
        merged_events: list[Event] = []
        async with self._stores.transaction("merge_all") as tx:
            events = await tx.events.list_events_for_user(user_id)
            groups = group_chain_overlaps(sort_events(events))
            if not groups:
                log.info("merge_nothing_to_merge", user_id=user_id, event_count=len(events))
                return []

            now = datetime.now(UTC)
            for group in groups:
                merged = synthesize_merged_event(group, now=now)
                await replace_events_with_merged(tx, merged, group, user_id)
                merged_events.append(merged)

        log.info(
            "events_merged",
            user_id=user_id,
            group_count=len(merged_events),
            merged_event_ids=[e.event_id for e in merged_events],
        )
        return merged_events

    async def _send_merge_event(self, merged: Event, user_id: str) -> None:
        """提交后发送摘要请求，失败只记录日志"""
        if self._producer is None:
            return
        try:
            await self._producer.send_merge_event(
                MergeEventMessage.from_merged_event(merged, user_id)
            )
        except Exception as e:
            log.error(
                "merge_event_send_failed",
                user_id=user_id,
                event_id=merged.event_id,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def batch_create(
        self,
        items: list[EventCreate],
        user_id: str | None = None,
    ) -> list[Event]:
        """单事务批量创建事件

        Raises:
            EventValidationError: 超出批量上限或参与者不存在（整体回滚）
            StoreTransactionError: 存储事务失败（整体回滚）
        """
        if len(items) > BATCH_MAX_EVENTS:
            raise EventValidationError(
                f"Maximum {BATCH_MAX_EVENTS} events allowed per batch"
            )

        now = datetime.now(UTC)
        events = [item.to_event(str(ULID()), now) for item in items]
        if not events:
            return []

        async with self._stores.transaction("batch_create") as tx:
            entry = await insert_events_batch(tx, events, user_id=user_id)

        log.info("events_batch_created", batch_size=len(events), audit_entry_id=entry.entry_id)

        if self._producer is not None:
            try:
                await self._producer.send_batch_processing(
                    BatchProcessingMessage(batch_id=entry.entry_id, event_count=len(events))
                )
            except Exception as e:
                log.error(
                    "batch_processing_send_failed",
                    batch_id=entry.entry_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        return events
