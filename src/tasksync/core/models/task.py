"""Task Domain Model

本地实体记录。sync_status / server_id / last_synced_at 三个字段
只由同步引擎写入，其余字段由本地变更写入。
软删除的 Task 仍保留在存储中，但不出现在任何读取结果里。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from .enums import SyncStatus


def ensure_aware(value: datetime) -> datetime:
    """无时区信息的时间戳一律按 UTC 解释"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Task(BaseModel):
    """Task 数据模型

    updated_at 在多次变更之间单调不减（由 TaskService 保证）。
    """

    id: str = Field(description="唯一标识，客户端生成（ULID 格式）")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    completed: bool = Field(default=False, description="是否已完成")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="最后修改时间")
    is_deleted: bool = Field(default=False, description="软删除标记")
    sync_status: SyncStatus = Field(default=SyncStatus.PENDING, description="同步状态")
    server_id: str | None = Field(default=None, description="远端分配的标识，首次同步成功前为空")
    last_synced_at: datetime | None = Field(default=None, description="最近一次同步成功时间")

    @field_validator("created_at", "updated_at", "last_synced_at")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_aware(value)

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: str | None) -> str:
        # 远端快照中 description 可能为 null
        return "" if value is None else value
