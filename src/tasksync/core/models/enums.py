"""枚举定义

包含 Task 同步状态、队列操作类型、批量同步结果状态三组枚举。
取值即为持久化与线上传输的字符串形式。
"""

from enum import StrEnum


class SyncStatus(StrEnum):
    """Task 同步状态"""

    PENDING = "pending"
    SYNCED = "synced"
    ERROR = "error"


class QueueOperation(StrEnum):
    """同步队列操作类型 -- 与本地变更一一对应"""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class OutcomeStatus(StrEnum):
    """远端对单个队列项的处理结果"""

    SUCCESS = "success"
    CONFLICT = "conflict"
    ERROR = "error"


# 需要（重新）同步的状态集合
NEEDS_SYNC_STATES: set[SyncStatus] = {
    SyncStatus.PENDING,
    SyncStatus.ERROR,
}
