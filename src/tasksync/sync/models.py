"""同步引擎数据模型

包含批量同步的线上协议（请求/响应）、单次同步的聚合结果，
以及冲突解决、状态查询的返回值。
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from tasksync.core.models import OutcomeStatus, QueueItem, QueueOperation, Task


class FailureKind(StrEnum):
    """单个队列项失败的分类

    所有类别统一按可重试处理（计入 retry_count），分类仅用于诊断。
    """

    TRANSPORT = "transport"  # 整批交换失败：连接/超时/非 2xx/响应无法解析
    REJECTED = "rejected"  # 远端对该项返回 error
    MISSING_OUTCOME = "missing_outcome"  # 响应中缺少该项的结果
    APPLY_FAILED = "apply_failed"  # 本地回写失败或 conflict 缺少可用的 resolved_data


class ConflictWinner(StrEnum):
    LOCAL = "local"
    REMOTE = "remote"


class BatchSyncRequest(BaseModel):
    """POST {api_base_url}/sync 请求体"""

    items: list[QueueItem] = Field(description="本批队列项（按入队顺序）")
    client_timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="客户端发送时间",
    )


class ProcessedItem(BaseModel):
    """远端对单个队列项的处理结果"""

    client_id: str = Field(description="对应的客户端队列项 ID")
    status: OutcomeStatus = Field(description="success / conflict / error")
    server_id: str | None = Field(default=None, description="success 时远端分配的 ID")
    resolved_data: dict[str, Any] | None = Field(
        default=None,
        description="conflict 时远端持有的 Task 快照",
    )
    error: str | None = Field(default=None, description="error 时的错误信息")

    def resolved_task(self, base: Task | None = None) -> Task | None:
        """将 resolved_data 校验为 Task 模型

        Args:
            base: 本地 Task；远端快照缺失的字段取本地值，id 始终沿用本地值

        Raises:
            pydantic.ValidationError: 快照缺少必要字段或字段类型不合法
        """
        if self.resolved_data is None:
            return None
        data: dict[str, Any] = base.model_dump() if base is not None else {}
        data.update(self.resolved_data)
        if base is not None:
            data["id"] = base.id
        return Task.model_validate(data)


class BatchSyncResponse(BaseModel):
    """POST {api_base_url}/sync 响应体"""

    processed_items: list[ProcessedItem] = Field(default_factory=list)


class SyncErrorRecord(BaseModel):
    """聚合结果中的单条错误记录"""

    task_id: str
    operation: QueueOperation
    error: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    kind: FailureKind = Field(default=FailureKind.REJECTED)


class SyncResult(BaseModel):
    """单次同步的聚合结果（不持久化）"""

    success: bool = Field(default=True)
    synced_items: int = Field(default=0)
    failed_items: int = Field(default=0)
    errors: list[SyncErrorRecord] = Field(default_factory=list)

    def record_failure(
        self,
        item: QueueItem,
        error: str,
        kind: FailureKind,
    ) -> None:
        self.failed_items += 1
        self.errors.append(
            SyncErrorRecord(
                task_id=item.task_id,
                operation=item.operation,
                error=error,
                kind=kind,
            )
        )


class ConflictResolution(BaseModel):
    """冲突解决结果"""

    winner: ConflictWinner
    task: Task


class SyncStatusReport(BaseModel):
    """同步状态查询结果"""

    pending_count: int
    last_synced_at: datetime | None = None
    server_reachable: bool
