"""gateway 测试配置 -- FastAPI app + 模拟远端 + async DB fixture"""

import json
import os
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tasksync.core.store import create_store_group
from tasksync.sync import SyncConfig, create_orchestrator


class FakeRemote:
    """模拟远端：/health 可达性可切换，/sync 对每个队列项返回同一种结果"""

    def __init__(self) -> None:
        self.reachable = True
        self.outcome_status = "success"
        self.sync_requests: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if not self.reachable:
            raise httpx.ConnectError("connection refused", request=request)

        if request.url.path.endswith("/health"):
            return httpx.Response(200, json={"status": "ok"})

        body = json.loads(request.content)
        self.sync_requests.append(body)
        processed = []
        for item in body["items"]:
            outcome = {"client_id": item["id"], "status": self.outcome_status}
            if self.outcome_status == "success":
                outcome["server_id"] = f"srv-{item['task_id']}"
            elif self.outcome_status == "error":
                outcome["error"] = "rejected by server"
            processed.append(outcome)
        return httpx.Response(200, json={"processed_items": processed})


@pytest_asyncio.fixture
async def remote() -> FakeRemote:
    return FakeRemote()


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, remote: FakeRemote):
    os.environ["TASKSYNC_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from tasksync.gateway.main import create_app
    from tasksync.gateway.services.sync_service import SyncService

    app = create_app()

    # 手动初始化（绕过 lifespan）
    store_group = await create_store_group(str(tmp_path / "test.db"))
    config = SyncConfig(api_base_url="http://remote.test/api", batch_size=10, max_retries=3)
    orchestrator = create_orchestrator(
        store_group,
        config,
        transport=httpx.MockTransport(remote.handler),
    )
    app.state.store_group = store_group
    app.state.sync_config = config
    app.state.sync_service = SyncService(orchestrator)

    yield app

    await store_group.conn.close()
    os.environ.pop("TASKSYNC_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
