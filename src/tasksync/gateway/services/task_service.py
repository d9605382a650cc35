"""TaskService -- 任务创建/更新/软删除/查询业务逻辑

每一次本地变更（create / update / delete）都在同一事务内：
1. 写入变更后的 Task（sync_status 置为 pending）
2. 追加携带完整快照的同步队列项
同步引擎依赖这一耦合，不会再对存储状态做独立比对。
"""

from datetime import UTC, datetime

import structlog
from tasksync.core.models import NEEDS_SYNC_STATES, QueueOperation, SyncStatus, Task
from tasksync.core.store import StoreGroup, save_task_and_enqueue
from ulid import ULID

log = structlog.get_logger()


def _next_updated_at(previous: datetime) -> datetime:
    """保证 updated_at 单调不减（本地时钟回拨时沿用上一次的值）"""
    return max(datetime.now(UTC), previous)


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def create_task(self, title: str, description: str = "") -> Task:
        """创建任务并入队 create 操作"""
        now = datetime.now(UTC)
        task = Task(
            id=str(ULID()),
            title=title,
            description=description,
            completed=False,
            created_at=now,
            updated_at=now,
            is_deleted=False,
            sync_status=SyncStatus.PENDING,
        )
        await self._commit(task, QueueOperation.CREATE)
        return task

    async def update_task(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        completed: bool | None = None,
    ) -> Task | None:
        """更新任务并入队 update 操作

        Returns:
            更新后的 Task；任务不存在或已软删除时返回 None
        """
        existing = await self._stores.task_store.get_task(task_id)
        if existing is None:
            return None

        updates: dict = {
            "updated_at": _next_updated_at(existing.updated_at),
            "sync_status": SyncStatus.PENDING,
        }
        if title is not None:
            updates["title"] = title
        if description is not None:
            updates["description"] = description
        if completed is not None:
            updates["completed"] = completed

        task = existing.model_copy(update=updates)
        await self._commit(task, QueueOperation.UPDATE)
        return task

    async def delete_task(self, task_id: str) -> bool:
        """软删除任务并入队 delete 操作

        Returns:
            True 如果已删除；任务不存在或已软删除时返回 False
        """
        existing = await self._stores.task_store.get_task(task_id)
        if existing is None:
            return False

        task = existing.model_copy(
            update={
                "is_deleted": True,
                "updated_at": _next_updated_at(existing.updated_at),
                "sync_status": SyncStatus.PENDING,
            }
        )
        await self._commit(task, QueueOperation.DELETE)
        return True

    async def get_task(self, task_id: str) -> Task | None:
        """查询单个任务（软删除视为不存在）"""
        return await self._stores.task_store.get_task(task_id)

    async def list_tasks(self) -> list[Task]:
        """查询所有未删除任务"""
        return await self._stores.task_store.list_tasks()

    async def list_tasks_needing_sync(self) -> list[Task]:
        """查询 sync_status 为 pending 或 error 的任务"""
        return await self._stores.task_store.list_tasks_by_sync_status(NEEDS_SYNC_STATES)

    async def _commit(self, task: Task, operation: QueueOperation) -> None:
        item = await save_task_and_enqueue(
            self._stores.conn,
            self._stores.task_store,
            self._stores.queue_store,
            task,
            operation,
        )
        log.info(
            "task_mutation_committed",
            task_id=task.id,
            operation=operation.value,
            queue_item_id=item.id,
        )
