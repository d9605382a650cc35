"""Store Protocol 接口定义

定义 TaskStore、SyncQueueStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Protocol

from ..models.enums import SyncStatus
from ..models.queue import QueueItem
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def save_task(self, task: Task) -> None:
        """整行覆盖写入已存在的任务"""
        ...

    async def get_task(self, task_id: str, include_deleted: bool = False) -> Task | None:
        """根据 id 查询任务，默认排除软删除记录"""
        ...

    async def list_tasks(self) -> list[Task]:
        """查询所有未删除任务"""
        ...

    async def list_tasks_by_sync_status(self, statuses: set[SyncStatus]) -> list[Task]:
        """按同步状态筛选任务"""
        ...

    async def mark_synced(
        self,
        task_id: str,
        synced_at: datetime,
        server_id: str | None = None,
        status: SyncStatus = SyncStatus.SYNCED,
    ) -> None:
        """标记同步成功"""
        ...

    async def mark_error(self, task_id: str) -> None:
        """标记永久同步失败"""
        ...

    async def get_last_synced_at(self) -> datetime | None:
        """最近一次同步成功时间"""
        ...


class SyncQueueStore(Protocol):
    """同步队列存储接口

    追加写入，仅允许更新重试记录，成功或永久失败后删除。
    """

    async def insert_item(self, item: QueueItem) -> int:
        """追加队列项，返回插入序号"""
        ...

    async def get_all_items(self) -> list[QueueItem]:
        """查询所有队列项，按入队时间正序"""
        ...

    async def update_item(self, item: QueueItem) -> None:
        """更新重试记录"""
        ...

    async def delete_for_task(self, task_id: str, through_seq: int | None = None) -> int:
        """删除指定 Task 的队列项"""
        ...

    async def delete_item(self, item_id: str) -> int:
        """删除单个队列项"""
        ...

    async def count_items(self) -> int:
        """队列项总数"""
        ...
