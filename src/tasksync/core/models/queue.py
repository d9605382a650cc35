"""同步队列项 Domain Model

sync_queue 表中的一行：一次本地变更的冻结快照 + 重试记录。
data 是入队时 Task 的完整深拷贝，之后对 Task 的修改不会影响已入队的项。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .enums import QueueOperation
from .task import Task, ensure_aware


class QueueItem(BaseModel):
    """同步队列项

    同一次同步过程中按 (created_at, seq) 升序处理。
    """

    id: str = Field(description="队列项唯一标识，与 Task ID 无关")
    task_id: str = Field(description="目标 Task ID")
    operation: QueueOperation = Field(description="操作类型")
    data: Task = Field(description="入队时 Task 的完整快照")
    created_at: datetime = Field(description="入队时间")
    retry_count: int = Field(default=0, ge=0, description="已失败次数")
    error_message: str | None = Field(default=None, description="最近一次失败原因")
    seq: int | None = Field(
        default=None,
        description="插入序号（数据库自增），入队时间相同时用于稳定排序",
        exclude=True,
    )

    @field_validator("created_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return ensure_aware(value)
