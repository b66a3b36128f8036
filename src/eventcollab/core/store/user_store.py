"""UserStore SQLite 实现

用户数据由外部 CRUD 层维护，此处仅提供存在性查询与测试/初始化所需的写入。
"""

import aiosqlite

from ..models.user import User


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_user(self, user: User) -> None:
        """创建用户记录

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            "INSERT INTO users (user_id, name, email) VALUES (?, ?, ?)",
            (user.user_id, user.name, user.email),
        )

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        cursor = await self._conn.execute(
            "SELECT user_id, name, email FROM users WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return User(user_id=row[0], name=row[1], email=row[2])

    async def find_missing_user_ids(self, user_ids: list[str]) -> list[str]:
        """返回 user_ids 中不存在的 ID（保持输入顺序）"""
        if not user_ids:
            return []
        placeholders = ",".join("?" for _ in user_ids)
        cursor = await self._conn.execute(
            f"SELECT user_id FROM users WHERE user_id IN ({placeholders})",
            tuple(user_ids),
        )
        rows = await cursor.fetchall()
        existing = {row[0] for row in rows}
        return [uid for uid in user_ids if uid not in existing]
