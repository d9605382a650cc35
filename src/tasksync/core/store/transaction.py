"""Task 写入 + 同步队列原子事务封装

本地变更与同步结果回写都需要同时修改 tasks 与 sync_queue 两张表，
在同一 SQLite 事务内提交，确保同步队列是本地变更的忠实重放日志：
- 本地变更：Task 写入与入队要么都成功，要么都不发生
- 同步成功：Task 状态回写成功之后队列项才会被删除

HTTP 变更与同步回写共享同一个连接，写事务之间通过 write_lock 串行化，
一方的 rollback 不会撤销另一方尚未提交的写入。
"""

import asyncio
import weakref
from datetime import UTC, datetime

import aiosqlite
from ulid import ULID

from ..models.enums import QueueOperation, SyncStatus
from ..models.queue import QueueItem
from ..models.task import Task
from .queue_store import SqliteSyncQueueStore
from .task_store import SqliteTaskStore

_WRITE_LOCKS: "weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def write_lock(conn: aiosqlite.Connection) -> asyncio.Lock:
    """获取连接级写事务锁（同一连接上同一时刻只有一个写事务）"""
    lock = _WRITE_LOCKS.get(conn)
    if lock is None:
        lock = asyncio.Lock()
        _WRITE_LOCKS[conn] = lock
    return lock


def build_queue_item(
    task_id: str,
    operation: QueueOperation,
    payload: Task,
    now: datetime | None = None,
) -> QueueItem:
    """构建新的队列项（retry_count=0，无错误信息）

    payload 会被深拷贝，入队后对原 Task 对象的修改不影响队列项。
    """
    return QueueItem(
        id=str(ULID()),
        task_id=task_id,
        operation=operation,
        data=payload.model_copy(deep=True),
        created_at=now or datetime.now(UTC),
        retry_count=0,
        error_message=None,
    )


async def save_task_and_enqueue(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    queue_store: SqliteSyncQueueStore,
    task: Task,
    operation: QueueOperation,
) -> QueueItem:
    """在同一事务内写入 Task 并追加对应的同步队列项

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskStore 实例
        queue_store: SyncQueueStore 实例
        task: 变更后的完整 Task（sync_status 应已置为 pending）
        operation: create 时插入新行，其余覆盖已有行

    Returns:
        已持久化的队列项

    Raises:
        Exception: 如果事务提交失败，自动回滚
    """
    item = build_queue_item(task.id, operation, task)
    async with write_lock(conn):
        try:
            if operation == QueueOperation.CREATE:
                await task_store.create_task(task)
            else:
                await task_store.save_task(task)

            seq = await queue_store.insert_item(item)

            # 原子提交
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

    return item.model_copy(update={"seq": seq})


async def mark_synced_and_dequeue(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    queue_store: SqliteSyncQueueStore,
    task_id: str,
    synced_at: datetime,
    server_id: str | None = None,
    through_seq: int | None = None,
    resolved: Task | None = None,
) -> None:
    """同步成功回写：(可选) 写入冲突解决后的快照 + 删除队列项 + 标记 synced

    删除后该 Task 仍有待同步项（同步期间产生的新变更）时，状态保持 pending。

    Args:
        through_seq: 仅删除该序号及之前的队列项，None 表示删除该 Task 的全部队列项
        resolved: 冲突解决得到的获胜快照，None 表示无需覆盖 Task 内容
    """
    async with write_lock(conn):
        try:
            if resolved is not None:
                await task_store.save_task(resolved)
            await queue_store.delete_for_task(task_id, through_seq)
            remaining = await queue_store.get_items_for_task(task_id)
            status = SyncStatus.PENDING if remaining else SyncStatus.SYNCED
            await task_store.mark_synced(task_id, synced_at, server_id, status=status)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise


async def mark_error_and_dequeue(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    queue_store: SqliteSyncQueueStore,
    task_id: str,
    item_id: str,
) -> None:
    """永久失败回写：Task 标记 error + 删除该队列项"""
    async with write_lock(conn):
        try:
            await task_store.mark_error(task_id)
            await queue_store.delete_item(item_id)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
