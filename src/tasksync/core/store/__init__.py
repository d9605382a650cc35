"""tasksync Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .queue_store import SqliteSyncQueueStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import (
    build_queue_item,
    mark_error_and_dequeue,
    mark_synced_and_dequeue,
    save_task_and_enqueue,
    write_lock,
)


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.queue_store = SqliteSyncQueueStore(conn)


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
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteSyncQueueStore",
    "init_db",
    "build_queue_item",
    "save_task_and_enqueue",
    "mark_synced_and_dequeue",
    "mark_error_and_dequeue",
    "write_lock",
]
