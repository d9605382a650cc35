"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 同步引擎初始化 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from tasksync.core.config import get_db_path
from tasksync.core.store import create_store_group
from tasksync.sync import create_orchestrator, load_sync_config

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, sync, tasks
from .services.sync_service import SyncService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和同步引擎，关闭时清理连接"""
    # 启动：初始化 Store
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    # 同步引擎初始化（配置作为显式值传入）
    sync_config = load_sync_config()
    app.state.sync_config = sync_config
    orchestrator = create_orchestrator(store_group, sync_config)
    app.state.sync_service = SyncService(orchestrator)
    log.info(
        "sync_engine_initialized",
        db_path=db_path,
        api_base_url=sync_config.api_base_url,
        batch_size=sync_config.batch_size,
        max_retries=sync_config.max_retries,
    )

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="tasksync Gateway",
        version="0.1.0",
        description="离线优先任务同步服务 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(sync.router, tags=["sync"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
