"""ConnectivityProbe -- 远端可达性探测

GET {api_base_url}/health，超时内返回任意 2xx 即视为可达。
不抛出异常：连接失败、超时、非 2xx 一律返回 False。
"""

import httpx
import structlog

log = structlog.get_logger()

# 探测默认超时（秒），健康检查应快速响应
DEFAULT_PROBE_TIMEOUT_S = 5


class ConnectivityProbe:
    """远端可达性探测"""

    def __init__(
        self,
        api_base_url: str,
        timeout_s: float = DEFAULT_PROBE_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_base_url: 远端基础 URL
            timeout_s: 探测超时（秒）
            transport: 可选的 httpx transport（测试时注入 MockTransport）
        """
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def health_url(self) -> str:
        return f"{self._api_base_url}/health"

    async def check(self) -> bool:
        """检查远端是否可达

        Returns:
            True 如果远端在超时内返回 2xx，否则 False
        """
        url = self.health_url
        try:
            async with httpx.AsyncClient(transport=self._transport) as http_client:
                resp = await http_client.get(url, timeout=self._timeout_s)
                reachable = 200 <= resp.status_code < 300
                if not reachable:
                    log.debug(
                        "connectivity_probe_non_2xx",
                        url=url,
                        status_code=resp.status_code,
                    )
                return reachable
        except Exception as e:
            log.debug("connectivity_probe_failed", url=url, error=str(e))
            return False
