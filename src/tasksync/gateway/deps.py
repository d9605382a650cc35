"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store / 服务实例

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from tasksync.core.store import StoreGroup

from .services.sync_service import SyncService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_sync_service(request: Request) -> SyncService:
    """从 app.state 获取 SyncService 实例"""
    return request.app.state.sync_service
