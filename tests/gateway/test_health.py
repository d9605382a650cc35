"""健康检查与可观测性测试

测试内容：
1. GET /health 返回 200 + ok
2. GET /ready 正常时返回 200 + checks 结构
3. GET /ready SQLite 不可用时返回 503
4. 响应头携带 X-Request-ID（沿用调用方传入值）
5. 健康检查请求以 debug 级别记录
"""

import logging

from httpx import AsyncClient
from structlog.testing import capture_logs
from tasksync.gateway.middleware.logging_config import setup_logging
from tasksync.gateway.middleware.logging_mw import resolve_request_id
from tasksync.gateway.middleware.trace_mw import extract_task_id


class TestHealthCheck:
    async def test_health_returns_200(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_ready_core_profile(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        assert data["profile"] == "core"
        assert data["checks"]["sqlite"] == "ok"
        assert data["checks"]["remote"] == "skipped"

    async def test_ready_full_profile_offline_still_ready(self, client: AsyncClient, remote):
        remote.reachable = False
        resp = await client.get("/ready", params={"profile": "full"})
        assert resp.status_code == 200
        assert resp.json()["checks"]["remote"] == "unreachable"

    async def test_ready_full_profile_online(self, client: AsyncClient):
        resp = await client.get("/ready", params={"profile": "full"})
        assert resp.json()["checks"]["remote"] == "ok"

    async def test_ready_sqlite_failure(self, client: AsyncClient, test_app):
        await test_app.state.store_group.conn.close()
        resp = await client.get("/ready")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["sqlite"] == "unavailable"


class TestObservability:
    async def test_request_id_header(self, client: AsyncClient):
        first = await client.get("/health")
        second = await client.get("/health")
        assert len(first.headers["X-Request-ID"]) == 26
        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    def test_extract_task_id(self):
        task_id = "01JTASK0000000000000000001"
        assert extract_task_id(f"/api/tasks/{task_id}") == task_id
        assert extract_task_id("/api/tasks") is None
        assert extract_task_id("/api/tasks/short") is None
        assert extract_task_id("/api/sync/status") is None

    async def test_inbound_request_id_is_echoed(self, client: AsyncClient):
        resp = await client.get("/api/tasks", headers={"X-Request-ID": "client-retry-42"})
        assert resp.status_code == 200
        assert resp.headers["X-Request-ID"] == "client-retry-42"

    def test_invalid_request_id_replaced(self):
        assert resolve_request_id("client-retry-42") == "client-retry-42"
        assert len(resolve_request_id(None)) == 26
        assert len(resolve_request_id("   ")) == 26
        assert len(resolve_request_id("x" * 200)) == 26
        assert len(resolve_request_id("bad\x00id")) == 26

    async def test_health_checks_logged_at_debug(self, client: AsyncClient):
        with capture_logs() as logs:
            await client.get("/health")
            await client.get("/api/tasks")

        levels = [entry["log_level"] for entry in logs if entry["event"] == "request_completed"]
        assert levels == ["debug", "info"]

    def test_outbound_http_logs_quieted(self, monkeypatch):
        monkeypatch.setenv("TASKSYNC_LOG_LEVEL", "INFO")
        setup_logging()
        assert logging.getLogger("httpx").level == logging.WARNING

        monkeypatch.setenv("TASKSYNC_LOG_LEVEL", "DEBUG")
        setup_logging()
        assert logging.getLogger("httpx").level == logging.DEBUG
        monkeypatch.setenv("TASKSYNC_LOG_LEVEL", "INFO")
        setup_logging()
