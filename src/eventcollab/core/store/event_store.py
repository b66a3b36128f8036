"""EventStore SQLite 实现

事件与参与者分两张表存储：events + event_invitees。
写方法不自动提交事务，由 StoreTransaction 统一提交或回滚。
"""

import json
from collections import defaultdict
from datetime import datetime

import aiosqlite

from ..models.enums import EventStatus
from ..models.event import Event

_EVENT_COLUMNS = (
    "event_id, title, description, status, start_time, end_time, "
    "merged_from, summary, created_at, updated_at"
)
_EVENT_COLUMNS_PREFIXED = (
    "e.event_id, e.title, e.description, e.status, e.start_time, e.end_time, "
    "e.merged_from, e.summary, e.created_at, e.updated_at"
)


def format_ts(value: datetime) -> str:
    """统一的时间序列化格式，保证字符串比较与时间比较一致"""
    return value.isoformat(timespec="microseconds")


class SqliteEventStore:
    """EventStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert_event(self, event: Event) -> None:
        """写入事件及其参与者关联

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            f"""
            INSERT INTO events ({_EVENT_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.event_id,
                event.title,
                event.description,
                event.status.value,
                format_ts(event.start_time),
                format_ts(event.end_time),
                json.dumps(event.merged_from),
                event.summary,
                format_ts(event.created_at),
                format_ts(event.updated_at),
            ),
        )
        if event.invitee_ids:
            await self._conn.executemany(
                "INSERT INTO event_invitees (event_id, user_id, position) VALUES (?, ?, ?)",
                [
                    (event.event_id, user_id, position)
                    for position, user_id in enumerate(event.invitee_ids)
                ],
            )

    async def delete_events(self, event_ids: list[str]) -> int:
        """删除事件（参与者关联通过外键级联删除）

        Returns:
            实际删除的行数
        """
        if not event_ids:
            return 0
        placeholders = ",".join("?" for _ in event_ids)
        cursor = await self._conn.execute(
            f"DELETE FROM events WHERE event_id IN ({placeholders})",
            tuple(event_ids),
        )
        return cursor.rowcount

    async def update_summary(self, event_id: str, summary: str, updated_at: datetime) -> bool:
        """回填合并摘要

        Returns:
            True 如果事件存在并已更新
        """
        cursor = await self._conn.execute(
            "UPDATE events SET summary = ?, updated_at = ? WHERE event_id = ?",
            (summary, format_ts(updated_at), event_id),
        )
        return cursor.rowcount > 0

    async def get_event(self, event_id: str) -> Event | None:
        """根据 event_id 查询事件"""
        events = await self.get_events([event_id])
        return events[0] if events else None

    async def get_events(self, event_ids: list[str]) -> list[Event]:
        """按 ID 批量查询事件，不存在的 ID 被忽略，按 start_time 正序"""
        if not event_ids:
            return []
        placeholders = ",".join("?" for _ in event_ids)
        cursor = await self._conn.execute(
            f"""
            SELECT {_EVENT_COLUMNS} FROM events
            WHERE event_id IN ({placeholders})
            ORDER BY start_time ASC, event_id ASC
            """,
            tuple(event_ids),
        )
        rows = await cursor.fetchall()
        return await self._rows_to_events(rows)

    async def list_events_for_user(self, user_id: str) -> list[Event]:
        """查询用户参与的所有事件，按 start_time 正序"""
        cursor = await self._conn.execute(
            f"""
            SELECT {_EVENT_COLUMNS_PREFIXED}
            FROM events e
            JOIN event_invitees ei ON ei.event_id = e.event_id
            WHERE ei.user_id = ?
            ORDER BY e.start_time ASC, e.event_id ASC
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return await self._rows_to_events(rows)

    async def _load_invitees(self, event_ids: list[str]) -> dict[str, list[str]]:
        """批量加载参与者，按写入顺序"""
        invitees: dict[str, list[str]] = defaultdict(list)
        if not event_ids:
            return invitees
        placeholders = ",".join("?" for _ in event_ids)
        cursor = await self._conn.execute(
            f"""
            SELECT event_id, user_id FROM event_invitees
            WHERE event_id IN ({placeholders})
            ORDER BY event_id, position ASC
            """,
            tuple(event_ids),
        )
        for row in await cursor.fetchall():
            invitees[row[0]].append(row[1])
        return invitees

    async def _rows_to_events(self, rows) -> list[Event]:
        invitees = await self._load_invitees([row[0] for row in rows])
        return [self._row_to_event(row, invitees.get(row[0], [])) for row in rows]

    @staticmethod
    def _row_to_event(row: aiosqlite.Row, invitee_ids: list[str]) -> Event:
        """将数据库行转换为 Event 模型"""
        return Event(
            event_id=row[0],
            title=row[1],
            description=row[2],
            status=EventStatus(row[3]),
            start_time=datetime.fromisoformat(row[4]),
            end_time=datetime.fromisoformat(row[5]),
            merged_from=json.loads(row[6]) if row[6] else [],
            summary=row[7],
            created_at=datetime.fromisoformat(row[8]),
            updated_at=datetime.fromisoformat(row[9]),
            invitee_ids=invitee_ids,
        )
