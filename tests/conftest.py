"""全局 pytest 配置 -- 临时 SQLite 数据库 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from tasksync.core.models import SyncStatus, Task
from tasksync.core.store import StoreGroup


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from tasksync.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(db_conn: aiosqlite.Connection) -> StoreGroup:
    """共享临时连接的 Store 实例组"""
    return StoreGroup(db_conn)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """构造测试用 Task"""

    def _make(task_id: str = "01JTASK0000000000000000001", **overrides) -> Task:
        now = datetime.now(UTC)
        fields = {
            "id": task_id,
            "title": "Buy milk",
            "description": "",
            "completed": False,
            "created_at": now,
            "updated_at": now,
            "is_deleted": False,
            "sync_status": SyncStatus.PENDING,
        }
        fields.update(overrides)
        return Task(**fields)

    return _make
