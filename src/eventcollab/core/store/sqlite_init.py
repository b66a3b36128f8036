"""SQLite 数据库初始化

PRAGMA 配置 + 四张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# users 表 DDL
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id  TEXT PRIMARY KEY,
    name     TEXT NOT NULL DEFAULT '',
    email    TEXT NOT NULL DEFAULT ''
);
"""

# events 表 DDL
_EVENTS_DDL = """
CREATE TABLE IF NOT EXISTS events (
    event_id     TEXT PRIMARY KEY,
    title        TEXT NOT NULL,
    description  TEXT,
    status       TEXT NOT NULL DEFAULT 'TODO',
    start_time   TEXT NOT NULL,
    end_time     TEXT NOT NULL,
    merged_from  TEXT NOT NULL DEFAULT '[]',
    summary      TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,

    CHECK (start_time < end_time)
);
"""

_EVENTS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_events_start_end ON events(start_time, end_time);",
]

# event_invitees 关联表 DDL（事件删除时级联删除关联）
_EVENT_INVITEES_DDL = """
CREATE TABLE IF NOT EXISTS event_invitees (
    event_id  TEXT NOT NULL,
    user_id   TEXT NOT NULL,
    position  INTEGER NOT NULL DEFAULT 0,

    PRIMARY KEY (event_id, user_id),
    FOREIGN KEY (event_id) REFERENCES events(event_id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(user_id)
);
"""

_EVENT_INVITEES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_event_invitees_user ON event_invitees(user_id);",
]

# audit_logs 表 DDL（append-only）
_AUDIT_LOGS_DDL = """
CREATE TABLE IF NOT EXISTS audit_logs (
    entry_id     TEXT PRIMARY KEY,
    user_id      TEXT,
    action       TEXT NOT NULL,
    metadata     TEXT NOT NULL DEFAULT '{}',
    description  TEXT NOT NULL DEFAULT '',
    created_at   TEXT NOT NULL
);
"""

_AUDIT_LOGS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_audit_logs_user_created ON audit_logs(user_id, created_at);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_USERS_DDL)
    await conn.execute(_EVENTS_DDL)
    await conn.execute(_EVENT_INVITEES_DDL)
    await conn.execute(_AUDIT_LOGS_DDL)

    # 创建索引
    for idx_sql in _EVENTS_INDEXES + _EVENT_INVITEES_INDEXES + _AUDIT_LOGS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()
