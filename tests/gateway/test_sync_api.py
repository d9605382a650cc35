"""同步 API 测试

测试内容：
1. POST /api/sync 远端不可达返回 503
2. 正常同步返回 200 + 聚合结果
3. 已有同步进行中返回 409
4. 队列读取失败返回 500
5. GET /api/sync/status
"""

from unittest.mock import AsyncMock, patch

from httpx import AsyncClient


class TestTriggerSync:
    async def test_unreachable_returns_503(self, client: AsyncClient, remote):
        remote.reachable = False
        await client.post("/api/tasks", json={"title": "Buy milk"})

        resp = await client.post("/api/sync")
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "SERVER_UNREACHABLE"
        assert remote.sync_requests == []

    async def test_sync_success(self, client: AsyncClient, remote):
        created = (await client.post("/api/tasks", json={"title": "Buy milk"})).json()

        resp = await client.post("/api/sync")
        assert resp.status_code == 200
        data = resp.json()
        assert data["message"] == "Sync completed"
        assert data["result"]["success"] is True
        assert data["result"]["synced_items"] == 1
        assert data["result"]["failed_items"] == 0

        task = (await client.get(f"/api/tasks/{created['id']}")).json()
        assert task["sync_status"] == "synced"
        assert task["server_id"] == f"srv-{created['id']}"
        assert len(remote.sync_requests) == 1

    async def test_sync_reports_item_errors(self, client: AsyncClient, remote):
        remote.outcome_status = "error"
        await client.post("/api/tasks", json={"title": "Buy milk"})

        resp = await client.post("/api/sync")
        assert resp.status_code == 200
        result = resp.json()["result"]
        assert result["failed_items"] == 1
        assert result["errors"][0]["error"] == "rejected by server"
        assert result["errors"][0]["operation"] == "create"

    async def test_sync_in_progress_returns_409(self, client: AsyncClient, test_app):
        sync_service = test_app.state.sync_service
        async with sync_service._lock:
            resp = await client.post("/api/sync")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "SYNC_IN_PROGRESS"

    async def test_queue_read_failure_returns_500(self, client: AsyncClient, test_app):
        orchestrator = test_app.state.sync_service._orchestrator
        with patch.object(
            orchestrator.queue,
            "all_pending",
            AsyncMock(side_effect=RuntimeError("database is locked")),
        ):
            resp = await client.post("/api/sync")
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "SYNC_STORE_UNAVAILABLE"


class TestSyncStatus:
    async def test_status_before_and_after_sync(self, client: AsyncClient):
        await client.post("/api/tasks", json={"title": "Buy milk"})
        await client.post("/api/tasks", json={"title": "Buy bread"})

        before = (await client.get("/api/sync/status")).json()
        assert before["pending_count"] == 2
        assert before["last_synced_at"] is None
        assert before["server_reachable"] is True

        await client.post("/api/sync")

        after = (await client.get("/api/sync/status")).json()
        assert after["pending_count"] == 0
        assert after["last_synced_at"] is not None

    async def test_status_when_offline(self, client: AsyncClient, remote):
        remote.reachable = False
        resp = await client.get("/api/sync/status")
        assert resp.status_code == 200
        assert resp.json()["server_reachable"] is False
