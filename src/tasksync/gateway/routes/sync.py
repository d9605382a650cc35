"""同步路由

POST /api/sync: 手动触发一次同步（先探测远端可达性）
GET  /api/sync/status: 待同步数量、最近同步时间、远端可达性
"""

import structlog
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse
from tasksync.sync import SyncStoreError

from ..deps import get_sync_service
from ..services.sync_service import SyncInProgressError, SyncService

log = structlog.get_logger()

router = APIRouter()


@router.post("/api/sync")
async def trigger_sync(sync_service: SyncService = Depends(get_sync_service)):
    """手动触发同步"""
    if sync_service.in_progress:
        return JSONResponse(
            status_code=409,
            content={
                "error": {
                    "code": "SYNC_IN_PROGRESS",
                    "message": "A sync pass is already in progress",
                }
            },
        )

    if not await sync_service.check_connectivity():
        return JSONResponse(
            status_code=503,
            content={
                "error": {
                    "code": "SERVER_UNREACHABLE",
                    "message": "Server not reachable. Please try again later.",
                }
            },
        )

    try:
        result = await sync_service.run_sync()
    except SyncInProgressError as e:
        return JSONResponse(
            status_code=409,
            content={"error": {"code": "SYNC_IN_PROGRESS", "message": str(e)}},
        )
    except SyncStoreError as e:
        log.error("sync_request_failed", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "SYNC_STORE_UNAVAILABLE", "message": str(e)}},
        )

    return {
        "message": "Sync completed",
        "result": result.model_dump(mode="json"),
    }


@router.get("/api/sync/status")
async def sync_status(sync_service: SyncService = Depends(get_sync_service)):
    """查询同步状态"""
    report = await sync_service.get_status()
    return report.model_dump(mode="json")
