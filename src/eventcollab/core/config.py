"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、合并标题分隔符、批量写入上限、摘要缓存 TTL 等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("EVENTCOLLAB_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "EVENTCOLLAB_DB_PATH",
        str(_get_base_dir() / "sqlite" / "eventcollab.db"),
    )


def get_cache_backend() -> str:
    """获取摘要缓存后端：memory（默认）/ redis"""
    return os.environ.get("EVENTCOLLAB_CACHE_BACKEND", "memory").lower()


def get_redis_url() -> str:
    """获取 Redis 连接地址（仅 redis 缓存后端使用）"""
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


# 合并后标题的拼接分隔符
MERGE_TITLE_SEPARATOR: str = os.environ.get("EVENTCOLLAB_MERGE_TITLE_SEPARATOR", " + ")

# 合并后描述的拼接分隔符（空行）
MERGE_DESCRIPTION_SEPARATOR: str = "\n\n"

# 单次批量创建的事件上限
BATCH_MAX_EVENTS: int = int(os.environ.get("EVENTCOLLAB_BATCH_MAX_EVENTS", "500"))

# 摘要缓存 key 前缀
SUMMARY_CACHE_KEY_PREFIX: str = "ai-summary:"

# 摘要缓存 TTL（毫秒）
SUMMARY_CACHE_TTL_MS: int = int(
    os.environ.get("EVENTCOLLAB_SUMMARY_CACHE_TTL_MS", "3600000")
)
