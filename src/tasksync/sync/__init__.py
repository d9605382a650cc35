"""tasksync Sync -- 离线优先同步引擎

公开接口导出：同步队列、连通性探测、冲突解决、同步编排。
"""

# 远端客户端
from .client import SyncApiClient

# 配置
from .config import SyncConfig, load_sync_config

# 异常
from .exceptions import (
    BatchRejectedError,
    QueuePersistenceError,
    RemoteUnreachableError,
    SyncError,
    SyncStoreError,
)

# 数据模型
from .models import (
    BatchSyncRequest,
    BatchSyncResponse,
    ConflictResolution,
    ConflictWinner,
    FailureKind,
    ProcessedItem,
    SyncErrorRecord,
    SyncResult,
    SyncStatusReport,
)

# 核心组件
from .orchestrator import SyncOrchestrator, chunk_items, create_orchestrator
from .probe import ConnectivityProbe
from .queue import MutationQueue
from .resolver import resolve_conflict

__all__ = [
    "SyncConfig",
    "load_sync_config",
    "SyncApiClient",
    "ConnectivityProbe",
    "MutationQueue",
    "SyncOrchestrator",
    "create_orchestrator",
    "chunk_items",
    "resolve_conflict",
    "BatchSyncRequest",
    "BatchSyncResponse",
    "ProcessedItem",
    "SyncResult",
    "SyncErrorRecord",
    "SyncStatusReport",
    "ConflictResolution",
    "ConflictWinner",
    "FailureKind",
    "SyncError",
    "RemoteUnreachableError",
    "BatchRejectedError",
    "QueuePersistenceError",
    "SyncStoreError",
]
