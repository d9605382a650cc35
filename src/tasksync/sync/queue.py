"""MutationQueue -- 同步队列操作

同步引擎对 sync_queue 的唯一读写入口。每个写操作单独提交事务，
并与其他写事务共享连接级写锁；
需要与 Task 回写原子提交的场景见 tasksync.core.store.transaction。
"""

import aiosqlite
import structlog

from tasksync.core.models import QueueItem, QueueOperation, Task
from tasksync.core.store.protocols import SyncQueueStore
from tasksync.core.store.transaction import build_queue_item, write_lock

from .exceptions import QueuePersistenceError

log = structlog.get_logger()


class MutationQueue:
    """持久化的待同步变更队列"""

    def __init__(self, conn: aiosqlite.Connection, queue_store: SyncQueueStore) -> None:
        self._conn = conn
        self._store = queue_store

    async def enqueue(
        self,
        task_id: str,
        operation: QueueOperation,
        payload: Task,
    ) -> QueueItem:
        """追加一个新的队列项（retry_count=0），提交后返回

        Raises:
            QueuePersistenceError: 持久化失败
        """
        item = build_queue_item(task_id, operation, payload)
        async with write_lock(self._conn):
            try:
                seq = await self._store.insert_item(item)
                await self._conn.commit()
            except Exception as e:
                await self._conn.rollback()
                log.error(
                    "queue_enqueue_failed",
                    task_id=task_id,
                    operation=operation.value,
                    error=str(e),
                )
                raise QueuePersistenceError(
                    f"Failed to enqueue {operation.value} for task {task_id}: {e}",
                    original_error=e,
                ) from e

        log.debug(
            "queue_item_enqueued",
            item_id=item.id,
            task_id=task_id,
            operation=operation.value,
        )
        return item.model_copy(update={"seq": seq})

    async def all_pending(self) -> list[QueueItem]:
        """所有待同步项，按入队时间正序（最早的在前）"""
        return await self._store.get_all_items()

    async def remove(self, task_id: str, through_seq: int | None = None) -> int:
        """删除指定 Task 的队列项

        Args:
            through_seq: 仅删除该序号及之前入队的项，None 表示全部
        """
        async with write_lock(self._conn):
            removed = await self._store.delete_for_task(task_id, through_seq)
            await self._conn.commit()
        return removed

    async def remove_item(self, item_id: str) -> int:
        """删除单个队列项"""
        async with write_lock(self._conn):
            removed = await self._store.delete_item(item_id)
            await self._conn.commit()
        return removed

    async def update(self, item: QueueItem) -> None:
        """持久化新的 retry_count / error_message"""
        async with write_lock(self._conn):
            await self._store.update_item(item)
            await self._conn.commit()

    async def pending_count(self) -> int:
        return await self._store.count_items()
