"""EventCollab Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from .audit_store import SqliteAuditStore
from .event_store import SqliteEventStore
from .sqlite_init import init_db
from .transaction import (
    StoreTransaction,
    insert_events_batch,
    open_transaction,
    replace_events_with_merged,
)
from .user_store import SqliteUserStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    write_lock 串行化同一连接上的写事务；未提交的写入对同一连接上的读可见，
    因此业务读也需经由 read_scope() 在锁内执行。
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.write_lock = asyncio.Lock()
        self.user_store = SqliteUserStore(conn)
        self.event_store = SqliteEventStore(conn)
        self.audit_store = SqliteAuditStore(conn)

    def transaction(self, operation: str):
        """打开写事务，等价于 open_transaction(self, operation)"""
        return open_transaction(self, operation)

    @asynccontextmanager
    async def read_scope(self) -> AsyncIterator["StoreGroup"]:
        """在写锁内执行只读查询，只能看到已提交的数据

        不可在 transaction() 内嵌套使用（锁不可重入）。
        """
        async with self.write_lock:
            yield self


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "StoreTransaction",
    "create_store_group",
    "SqliteUserStore",
    "SqliteEventStore",
    "SqliteAuditStore",
    "init_db",
    "open_transaction",
    "replace_events_with_merged",
    "insert_events_batch",
]
