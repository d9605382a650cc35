"""SyncOrchestrator -- 同步主流程

一次同步（synchronize）的流程：
1. 连通性探测，不可达直接返回失败结果，不读取队列
2. 读取全部待同步项（按入队顺序）
3. 按 batch_size 分批，逐批顺序处理（批与批之间不重叠）
4. 每批提交给远端，按 client_id 将逐项结果匹配回队列项：
   - success: Task 标记 synced + 记录 server_id，删除队列项
   - conflict: 重新读取本地 Task，last-write-wins 解决后回写，删除队列项
   - 其他: 进入失败重试流程
5. 整批交换失败时本批所有项进入失败重试流程，整体 success=False
6. 所有批次处理完毕后返回聚合结果

除读取初始队列失败外，任何异常都不会中止进行中的同步。
并发调用 synchronize() 不安全，需由调用方串行化。
"""

import time
from datetime import UTC, datetime

import httpx
import structlog

from tasksync.core.models import OutcomeStatus, QueueItem
from tasksync.core.store import (
    StoreGroup,
    mark_error_and_dequeue,
    mark_synced_and_dequeue,
)

from .client import SyncApiClient
from .config import SyncConfig
from .exceptions import SyncStoreError
from .models import (
    ConflictWinner,
    FailureKind,
    ProcessedItem,
    SyncResult,
    SyncStatusReport,
)
from .probe import ConnectivityProbe
from .queue import MutationQueue
from .resolver import resolve_conflict

log = structlog.get_logger()


def chunk_items(items: list[QueueItem], size: int) -> list[list[QueueItem]]:
    """按入队顺序切分批次：第 i 批为 items[i*size : (i+1)*size]"""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [items[i : i + size] for i in range(0, len(items), size)]


class SyncOrchestrator:
    """同步编排器"""

    def __init__(
        self,
        stores: StoreGroup,
        config: SyncConfig,
        client: SyncApiClient | None = None,
        probe: ConnectivityProbe | None = None,
        queue: MutationQueue | None = None,
    ) -> None:
        """
        Args:
            stores: 共享数据库连接的 Store 实例组
            config: 同步配置（batch_size / max_retries / 远端地址）
            client: 批量同步客户端，None 时按 config 创建
            probe: 连通性探测，None 时按 config 创建
            queue: 同步队列，None 时基于 stores 创建
        """
        self._stores = stores
        self._config = config
        self._client = client or SyncApiClient(
            api_base_url=config.api_base_url,
            timeout_s=config.timeout_s,
        )
        self._probe = probe or ConnectivityProbe(
            api_base_url=config.api_base_url,
            timeout_s=config.probe_timeout_s,
        )
        self._queue = queue or MutationQueue(stores.conn, stores.queue_store)

    @property
    def queue(self) -> MutationQueue:
        return self._queue

    async def check_connectivity(self) -> bool:
        """远端是否可达（不抛异常）"""
        return await self._probe.check()

    async def get_status(self) -> SyncStatusReport:
        """待同步数量 + 最近同步时间 + 远端可达性"""
        pending_count = await self._queue.pending_count()
        last_synced_at = await self._stores.task_store.get_last_synced_at()
        reachable = await self.check_connectivity()
        return SyncStatusReport(
            pending_count=pending_count,
            last_synced_at=last_synced_at,
            server_reachable=reachable,
        )

    async def synchronize(self) -> SyncResult:
        """执行一次完整同步

        Returns:
            SyncResult 聚合结果

        Raises:
            SyncStoreError: 无法读取初始队列状态
        """
        start_time = time.monotonic()

        if not await self.check_connectivity():
            log.warning(
                "sync_pass_skipped_unreachable",
                api_base_url=self._config.api_base_url,
            )
            return SyncResult(success=False)

        try:
            items = await self._queue.all_pending()
        except Exception as e:
            log.error("sync_queue_read_failed", error=str(e))
            raise SyncStoreError(e) from e

        result = SyncResult()
        if not items:
            log.debug("sync_pass_nothing_pending")
            return result

        batches = chunk_items(items, self._config.batch_size)
        log.info(
            "sync_pass_started",
            item_count=len(items),
            batch_count=len(batches),
            batch_size=self._config.batch_size,
        )

        # 批次严格顺序处理，单批失败不影响后续批次
        for batch_index, batch in enumerate(batches):
            await self._process_batch(batch_index, batch, result)

        log.info(
            "sync_pass_completed",
            success=result.success,
            synced_items=result.synced_items,
            failed_items=result.failed_items,
            elapsed_ms=int((time.monotonic() - start_time) * 1000),
        )
        return result

    async def _process_batch(
        self,
        batch_index: int,
        batch: list[QueueItem],
        result: SyncResult,
    ) -> None:
        """提交一批并逐项应用结果"""
        try:
            response = await self._client.push_batch(batch)
        except Exception as e:
            # 整批交换失败（连接/超时/非 2xx/响应无法解析）
            log.warning(
                "batch_exchange_failed",
                batch_index=batch_index,
                item_count=len(batch),
                error=str(e),
                error_type=type(e).__name__,
            )
            result.success = False
            for item in batch:
                await self._handle_failure(item, str(e), FailureKind.TRANSPORT, result)
            return

        outcomes: dict[str, ProcessedItem] = {}
        batch_ids = {item.id for item in batch}
        for outcome in response.processed_items:
            if outcome.client_id not in batch_ids:
                log.warning(
                    "batch_outcome_unmatched",
                    batch_index=batch_index,
                    client_id=outcome.client_id,
                )
                continue
            if outcome.client_id in outcomes:
                log.warning(
                    "batch_outcome_duplicated",
                    batch_index=batch_index,
                    client_id=outcome.client_id,
                )
                continue
            outcomes[outcome.client_id] = outcome

        # 按入队顺序应用结果
        for item in batch:
            outcome = outcomes.get(item.id)
            if outcome is None:
                await self._handle_failure(
                    item,
                    "No outcome returned for item",
                    FailureKind.MISSING_OUTCOME,
                    result,
                )
                continue
            await self._apply_outcome(item, outcome, result)

    async def _apply_outcome(
        self,
        item: QueueItem,
        outcome: ProcessedItem,
        result: SyncResult,
    ) -> None:
        """应用单个队列项的处理结果；回写失败时转入重试流程"""
        try:
            if outcome.status == OutcomeStatus.SUCCESS:
                await mark_synced_and_dequeue(
                    self._stores.conn,
                    self._stores.task_store,
                    self._stores.queue_store,
                    task_id=item.task_id,
                    synced_at=datetime.now(UTC),
                    server_id=outcome.server_id,
                    through_seq=item.seq,
                )
                result.synced_items += 1
                log.debug(
                    "queue_item_synced",
                    item_id=item.id,
                    task_id=item.task_id,
                    server_id=outcome.server_id,
                )
            elif outcome.status == OutcomeStatus.CONFLICT and outcome.resolved_data is not None:
                if await self._apply_conflict(item, outcome):
                    result.synced_items += 1
            elif outcome.status == OutcomeStatus.CONFLICT:
                await self._handle_failure(
                    item,
                    outcome.error or "Conflict reported without resolved data",
                    FailureKind.APPLY_FAILED,
                    result,
                )
            else:
                await self._handle_failure(
                    item,
                    outcome.error or "Unknown error",
                    FailureKind.REJECTED,
                    result,
                )
        except Exception as e:
            log.error(
                "sync_outcome_apply_failed",
                item_id=item.id,
                task_id=item.task_id,
                status=outcome.status.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._handle_failure(
                item,
                f"Failed to apply {outcome.status.value} outcome: {e}",
                FailureKind.APPLY_FAILED,
                result,
            )

    async def _apply_conflict(self, item: QueueItem, outcome: ProcessedItem) -> bool:
        """冲突解决并回写

        本地 Task 在此时重新读取，不复用本次同步早先读到的数据。

        Returns:
            True 如果已回写并标记 synced；False 表示本地 Task 已不存在而跳过
        """
        local = await self._stores.task_store.get_task(item.task_id, include_deleted=True)
        if local is None:
            log.warning(
                "conflict_local_task_missing",
                item_id=item.id,
                task_id=item.task_id,
            )
            # 已被后续变更取代，丢弃该队列项，不计入成功或失败
            await self._queue.remove_item(item.id)
            return False

        remote = outcome.resolved_task(base=local)
        resolution = resolve_conflict(local, remote)

        resolved = None
        if resolution.winner == ConflictWinner.REMOTE:
            resolved = local.model_copy(
                update={
                    "title": remote.title,
                    "description": remote.description,
                    "completed": remote.completed,
                    "is_deleted": remote.is_deleted,
                    "updated_at": remote.updated_at,
                }
            )

        await mark_synced_and_dequeue(
            self._stores.conn,
            self._stores.task_store,
            self._stores.queue_store,
            task_id=item.task_id,
            synced_at=datetime.now(UTC),
            server_id=outcome.server_id or remote.server_id,
            through_seq=item.seq,
            resolved=resolved,
        )
        return True

    async def _handle_failure(
        self,
        item: QueueItem,
        error: str,
        kind: FailureKind,
        result: SyncResult,
    ) -> None:
        """失败重试流程

        retry_count + 1 并记录错误；超过 max_retries 时为永久失败：
        Task 标记 error 并删除队列项，否则保留队列项等待下一次同步。
        """
        result.record_failure(item, error, kind)
        failed = item.model_copy(
            update={
                "retry_count": item.retry_count + 1,
                "error_message": error,
            }
        )

        try:
            if failed.retry_count > self._config.max_retries:
                log.error(
                    "queue_item_permanent_failure",
                    item_id=item.id,
                    task_id=item.task_id,
                    operation=item.operation.value,
                    retry_count=failed.retry_count,
                    kind=kind.value,
                    error=error,
                )
                await mark_error_and_dequeue(
                    self._stores.conn,
                    self._stores.task_store,
                    self._stores.queue_store,
                    task_id=item.task_id,
                    item_id=item.id,
                )
            else:
                log.warning(
                    "queue_item_retry_scheduled",
                    item_id=item.id,
                    task_id=item.task_id,
                    retry_count=failed.retry_count,
                    max_retries=self._config.max_retries,
                    kind=kind.value,
                    error=error,
                )
                await self._queue.update(failed)
        except Exception as e:
            # 重试记录写入失败：队列项保持原状，下一次同步重新处理
            log.error(
                "queue_failure_bookkeeping_failed",
                item_id=item.id,
                task_id=item.task_id,
                error=str(e),
            )


def create_orchestrator(
    stores: StoreGroup,
    config: SyncConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SyncOrchestrator:
    """按配置创建 SyncOrchestrator

    Args:
        stores: Store 实例组
        config: 同步配置
        transport: 可选的 httpx transport，同时用于探测与批量交换
    """
    return SyncOrchestrator(
        stores=stores,
        config=config,
        client=SyncApiClient(
            api_base_url=config.api_base_url,
            timeout_s=config.timeout_s,
            transport=transport,
        ),
        probe=ConnectivityProbe(
            api_base_url=config.api_base_url,
            timeout_s=config.probe_timeout_s,
            transport=transport,
        ),
    )
