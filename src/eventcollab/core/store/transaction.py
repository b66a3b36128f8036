"""事务作用域封装

StoreTransaction 是显式传递的事务值：持有共享连接上的 Store 实例，
提供 commit/rollback。open_transaction() 在 StoreGroup 写锁内打开事务，
正常退出时提交，任何异常时整体回滚。

同一连接上的所有写事务必须经由 open_transaction()，
否则其他协程的 commit 可能提前提交未完成的事务。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiosqlite
import structlog
from ulid import ULID

from ..exceptions import EventCollabError, EventValidationError, StoreTransactionError
from ..models.audit import AuditEntry
from ..models.enums import AuditAction
from ..models.event import Event

if TYPE_CHECKING:
    from . import StoreGroup

log = structlog.get_logger()


class StoreTransaction:
    """单个事务作用域"""

    def __init__(self, stores: "StoreGroup", operation: str) -> None:
        self._conn = stores.conn
        self.operation = operation
        self.users = stores.user_store
        self.events = stores.event_store
        self.audit = stores.audit_store
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    async def commit(self) -> None:
        """提交事务（重复调用无副作用）"""
        if self._finished:
            return
        await self._conn.commit()
        self._finished = True

    async def rollback(self) -> None:
        """回滚事务（重复调用无副作用）"""
        if self._finished:
            return
        await self._conn.rollback()
        self._finished = True


@asynccontextmanager
async def open_transaction(
    stores: "StoreGroup",
    operation: str,
) -> AsyncIterator[StoreTransaction]:
    """在写锁内打开事务

    Raises:
        StoreTransactionError: 数据库层错误（已回滚）
        EventCollabError: 业务错误原样抛出（已回滚）
    """
    async with stores.write_lock:
        tx = StoreTransaction(stores, operation)
        try:
            yield tx
            await tx.commit()
        except EventCollabError:
            await tx.rollback()
            raise
        except aiosqlite.Error as e:
            await tx.rollback()
            log.error(
                "store_transaction_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreTransactionError(operation, e) from e
        except BaseException:
            await tx.rollback()
            raise


async def validate_invitees(tx: StoreTransaction, event: Event) -> None:
    """校验参与者引用均为已存在用户

    Raises:
        EventValidationError: 存在未知用户 ID
    """
    missing = await tx.users.find_missing_user_ids(event.invitee_ids)
    if missing:
        raise EventValidationError(
            f"One or more invitee IDs not found: {', '.join(missing)}",
            invalid_ids=missing,
        )


async def replace_events_with_merged(
    tx: StoreTransaction,
    merged: Event,
    originals: list[Event],
    user_id: str,
) -> AuditEntry:
    """在事务内用合并事件替换原始事件：写入合并事件、删除原始事件、追加审计

    Args:
        tx: 事务作用域
        merged: 合成的合并事件
        originals: 被合并的原始事件（合并组）
        user_id: 发起合并的用户

    Returns:
        写入的 EVENTS_MERGED 审计记录
    """
    await validate_invitees(tx, merged)
    await tx.events.insert_event(merged)

    old_ids = [e.event_id for e in originals]
    deleted = await tx.events.delete_events(old_ids)
    if deleted != len(old_ids):
        # 并发删除导致原始事件缺失，整组放弃
        raise EventValidationError(
            f"Expected to delete {len(old_ids)} events, deleted {deleted}",
            invalid_ids=old_ids,
        )

    entry = AuditEntry(
        entry_id=str(ULID()),
        action=AuditAction.EVENTS_MERGED,
        user_id=user_id,
        metadata={
            "old_event_ids": old_ids,
            "new_event_id": merged.event_id,
            "merge_count": len(originals),
        },
        description=f"Merged {len(originals)} events into one",
        created_at=datetime.now(UTC),
    )
    await tx.audit.append_entry(entry)
    return entry


async def insert_events_batch(
    tx: StoreTransaction,
    events: list[Event],
    user_id: str | None = None,
) -> AuditEntry:
    """在事务内批量写入事件并追加 BATCH_INSERT 审计"""
    for event in events:
        await validate_invitees(tx, event)
        await tx.events.insert_event(event)

    entry = AuditEntry(
        entry_id=str(ULID()),
        action=AuditAction.BATCH_INSERT,
        user_id=user_id,
        metadata={
            "batch_size": len(events),
            "event_ids": [e.event_id for e in events],
        },
        description=f"Batch created {len(events)} events",
        created_at=datetime.now(UTC),
    )
    await tx.audit.append_entry(entry)
    return entry
