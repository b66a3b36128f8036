"""AuditStore SQLite 实现

审计表 append-only：只允许插入，不允许更新或删除。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.audit import AuditEntry
from ..models.enums import AuditAction


class SqliteAuditStore:
    """AuditStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_entry(self, entry: AuditEntry) -> None:
        """追加审计记录（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            """
            INSERT INTO audit_logs (entry_id, user_id, action, metadata, description, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                entry.entry_id,
                entry.user_id,
                entry.action.value,
                json.dumps(entry.metadata, ensure_ascii=False),
                entry.description,
                entry.created_at.isoformat(),
            ),
        )

    async def list_entries(
        self,
        user_id: str | None = None,
        action: AuditAction | None = None,
    ) -> list[AuditEntry]:
        """查询审计记录，按 created_at 正序"""
        clauses = []
        params: list[str] = []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        if action is not None:
            clauses.append("action = ?")
            params.append(action.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"""
            SELECT entry_id, user_id, action, metadata, description, created_at
            FROM audit_logs {where}
            ORDER BY created_at ASC, entry_id ASC
            """,
            tuple(params),
        )
        rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> AuditEntry:
        """将数据库行转换为 AuditEntry 模型"""
        return AuditEntry(
            entry_id=row[0],
            user_id=row[1],
            action=AuditAction(row[2]),
            metadata=json.loads(row[3]) if row[3] else {},
            description=row[4],
            created_at=datetime.fromisoformat(row[5]),
        )
