"""CLI 入口模块 -- python -m eventcollab.core <command>

支持的命令：
  init-db               初始化数据库表结构
  conflicts <user_id>   列出用户的冲突事件（只读）
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m eventcollab.core <command>")
        print("命令:")
        print("  init-db               初始化数据库表结构")
        print("  conflicts <user_id>   列出用户的冲突事件")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "conflicts" and len(sys.argv) >= 3:
        exit_code = asyncio.run(print_conflicts(sys.argv[2]))
        sys.exit(exit_code)
    else:
        print(f"未知命令: {' '.join(sys.argv[1:])}")
        print("可用命令: init-db, conflicts <user_id>")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库并初始化表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def print_conflicts(user_id: str) -> int:
    """打印用户冲突事件，用户不存在时返回非零退出码"""
    from .conflicts import find_conflicts
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())

    try:
        if await store_group.user_store.get_user(user_id) is None:
            print(f"用户不存在: {user_id}")
            return 2
        events = await store_group.event_store.list_events_for_user(user_id)
        conflicts = find_conflicts(events)
        print(f"冲突事件数: {len(conflicts)}")
        for event in conflicts:
            print(
                f"  {event.event_id}  {event.start_time.isoformat()} - "
                f"{event.end_time.isoformat()}  {event.title}"
            )
        return 0
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
