"""tasksync Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import NEEDS_SYNC_STATES, OutcomeStatus, QueueOperation, SyncStatus
from .queue import QueueItem
from .task import Task, ensure_aware

__all__ = [
    # 枚举
    "SyncStatus",
    "QueueOperation",
    "OutcomeStatus",
    "NEEDS_SYNC_STATES",
    # Task
    "Task",
    "ensure_aware",
    # 同步队列
    "QueueItem",
]
