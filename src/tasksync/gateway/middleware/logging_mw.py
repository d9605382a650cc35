"""LoggingMiddleware -- 请求级日志

沿用调用方传入的 X-Request-ID（例如客户端重试同一次同步请求），
缺失或不合法时生成 ULID；request_id 绑定到 structlog contextvars 并回写到响应头。
存活/就绪探测会被频繁轮询，只记 debug 级别。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

# 调用方传入的 request_id 最大长度
_REQUEST_ID_MAX_LENGTH = 128

_HEALTH_CHECK_PATHS = frozenset({"/health", "/ready"})


def resolve_request_id(incoming: str | None) -> str:
    """取调用方传入的 request_id，缺失、过长或含不可打印字符时生成新的 ULID"""
    if incoming:
        candidate = incoming.strip()
        if 0 < len(candidate) <= _REQUEST_ID_MAX_LENGTH and candidate.isprintable():
            return candidate
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )

        log = structlog.get_logger()
        emit = log.adebug if path in _HEALTH_CHECK_PATHS else log.ainfo
        start_time = time.monotonic()

        await emit("request_started")
        try:
            response = await call_next(request)
        except Exception as e:
            await log.aerror(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            raise

        await emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
