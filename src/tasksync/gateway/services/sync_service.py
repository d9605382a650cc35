"""SyncService -- HTTP 层对同步引擎的调用封装

同步引擎本身不支持并发执行，此处持有单一的进程内锁，
同一时刻只允许一次同步在进行。
"""

import asyncio

import structlog
from tasksync.sync import SyncOrchestrator, SyncResult, SyncStatusReport

log = structlog.get_logger()


class SyncInProgressError(Exception):
    """已有同步正在进行"""


class SyncService:
    """同步业务服务"""

    def __init__(self, orchestrator: SyncOrchestrator) -> None:
        self._orchestrator = orchestrator
        self._lock = asyncio.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    async def check_connectivity(self) -> bool:
        return await self._orchestrator.check_connectivity()

    async def run_sync(self) -> SyncResult:
        """执行一次同步

        Raises:
            SyncInProgressError: 已有同步正在进行
            SyncStoreError: 无法读取同步队列
        """
        if self._lock.locked():
            raise SyncInProgressError("A sync pass is already in progress")

        async with self._lock:
            return await self._orchestrator.synchronize()

    async def get_status(self) -> SyncStatusReport:
        return await self._orchestrator.get_status()
