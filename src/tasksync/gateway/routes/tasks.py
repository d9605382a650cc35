"""任务路由

GET    /api/tasks: 任务列表（不含软删除）
GET    /api/tasks/{task_id}: 任务详情
POST   /api/tasks: 创建任务
PUT    /api/tasks/{task_id}: 更新任务
DELETE /api/tasks/{task_id}: 软删除任务
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import JSONResponse, Response
from tasksync.core.config import TASK_TITLE_MAX_LENGTH

from ..deps import get_store_group
from ..services.task_service import TaskService

router = APIRouter()


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    title: str | None = None
    description: str | None = None


class UpdateTaskRequest(BaseModel):
    """更新任务请求体，至少提供一个字段"""

    title: str | None = None
    description: str | None = None
    completed: bool | None = None


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _task_not_found(task_id: str) -> JSONResponse:
    return _error(404, "TASK_NOT_FOUND", f"Task with id {task_id} does not exist")


@router.get("/api/tasks")
async def list_tasks(store_group=Depends(get_store_group)):
    """查询所有未删除任务，按 created_at 倒序"""
    service = TaskService(store_group)
    tasks = await service.list_tasks()
    return [t.model_dump(mode="json") for t in tasks]


@router.get("/api/tasks/{task_id}")
async def get_task(task_id: str, store_group=Depends(get_store_group)):
    """查询单个任务"""
    service = TaskService(store_group)
    task = await service.get_task(task_id)
    if task is None:
        return _task_not_found(task_id)
    return task.model_dump(mode="json")


@router.post("/api/tasks", status_code=201)
async def create_task(
    body: CreateTaskRequest,
    store_group=Depends(get_store_group),
):
    """创建任务，同时入队 create 操作"""
    if body.title is None or not body.title.strip():
        return _error(400, "INVALID_REQUEST", "Title is required and must be a non-empty string")
    if len(body.title) > TASK_TITLE_MAX_LENGTH:
        return _error(400, "INVALID_REQUEST", f"Title exceeds {TASK_TITLE_MAX_LENGTH} characters")

    service = TaskService(store_group)
    task = await service.create_task(
        title=body.title,
        description=body.description or "",
    )
    return task.model_dump(mode="json")


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    store_group=Depends(get_store_group),
):
    """更新任务，同时入队 update 操作"""
    if body.title is None and body.description is None and body.completed is None:
        return _error(400, "INVALID_REQUEST", "No update fields provided")
    if body.title is not None and not body.title.strip():
        return _error(400, "INVALID_REQUEST", "Title must be a non-empty string")
    if body.title is not None and len(body.title) > TASK_TITLE_MAX_LENGTH:
        return _error(400, "INVALID_REQUEST", f"Title exceeds {TASK_TITLE_MAX_LENGTH} characters")

    service = TaskService(store_group)
    task = await service.update_task(
        task_id,
        title=body.title,
        description=body.description,
        completed=body.completed,
    )
    if task is None:
        return _task_not_found(task_id)
    return task.model_dump(mode="json")


@router.delete("/api/tasks/{task_id}")
async def delete_task(task_id: str, store_group=Depends(get_store_group)):
    """软删除任务，同时入队 delete 操作"""
    service = TaskService(store_group)
    deleted = await service.delete_task(task_id)
    if not deleted:
        return _task_not_found(task_id)
    return Response(status_code=204)
