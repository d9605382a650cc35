"""SyncApiClient -- 批量同步协议的 HTTP 封装

POST {api_base_url}/sync，请求体为 BatchSyncRequest，响应体为 BatchSyncResponse。
整批交换层面的失败统一转换为 SyncError 子类抛出，由 SyncOrchestrator 降级为逐项重试。
"""

import time

import httpx
import structlog
from pydantic import ValidationError

from tasksync.core.models import QueueItem

from .exceptions import BatchRejectedError, RemoteUnreachableError
from .models import BatchSyncRequest, BatchSyncResponse

log = structlog.get_logger()

# 连接类异常类型集合（触发 RemoteUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.TransportError,
)

# 错误详情截断长度
_ERROR_DETAIL_MAX_CHARS = 500


class SyncApiClient:
    """远端批量同步客户端"""

    def __init__(
        self,
        api_base_url: str = "http://localhost:3000/api",
        timeout_s: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_base_url: 远端基础 URL
            timeout_s: 单次批量交换超时（秒）
            transport: 可选的 httpx transport（测试时注入 MockTransport）
        """
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def sync_url(self) -> str:
        return f"{self._api_base_url}/sync"

    async def push_batch(self, items: list[QueueItem]) -> BatchSyncResponse:
        """提交一批队列项，返回逐项处理结果

        Args:
            items: 本批队列项（按入队顺序）

        Returns:
            BatchSyncResponse

        Raises:
            RemoteUnreachableError: 连接失败或超时
            BatchRejectedError: 非 2xx 响应或响应体无法解析
        """
        request = BatchSyncRequest(items=items)
        start_time = time.monotonic()

        log.debug("batch_exchange_start", url=self.sync_url, item_count=len(items))

        try:
            async with httpx.AsyncClient(transport=self._transport) as http_client:
                resp = await http_client.post(
                    self.sync_url,
                    json=request.model_dump(mode="json"),
                    timeout=self._timeout_s,
                )
        except _CONNECTION_ERROR_TYPES as e:
            log.warning(
                "batch_exchange_unreachable",
                url=self.sync_url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RemoteUnreachableError(
                base_url=self._api_base_url,
                original_error=e,
            ) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)

        if not resp.is_success:
            raise BatchRejectedError(
                status_code=resp.status_code,
                detail=resp.text[:_ERROR_DETAIL_MAX_CHARS],
            )

        try:
            response = BatchSyncResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise BatchRejectedError(
                status_code=resp.status_code,
                detail=f"invalid response body: {e}"[:_ERROR_DETAIL_MAX_CHARS],
            ) from e

        log.info(
            "batch_exchange_completed",
            item_count=len(items),
            outcome_count=len(response.processed_items),
            duration_ms=duration_ms,
        )
        return response
