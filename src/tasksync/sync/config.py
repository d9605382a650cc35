"""SyncConfig -- 同步引擎配置加载

从环境变量加载配置，作为显式配置值传入 SyncOrchestrator，
引擎内部不再直接读取环境变量。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


class SyncConfig(BaseModel):
    """同步引擎配置 -- 从环境变量加载

    环境变量:
        TASKSYNC_API_BASE_URL: 远端基础地址（默认 http://localhost:3000/api）
        TASKSYNC_BATCH_SIZE: 每批最大队列项数（默认 10）
        TASKSYNC_MAX_RETRIES: 永久失败前允许的最大失败次数（默认 3）
        TASKSYNC_TIMEOUT_S: 批量交换超时（秒，默认 30）
        TASKSYNC_PROBE_TIMEOUT_S: 连通性探测超时（秒，默认 5）
    """

    api_base_url: str = Field(
        default="http://localhost:3000/api",
        description="远端基础 URL，/sync 与 /health 挂在其下",
    )
    batch_size: int = Field(default=10, ge=1, description="每批最大队列项数")
    max_retries: int = Field(
        default=3,
        ge=0,
        description="失败次数超过此值即为永久失败",
    )
    timeout_s: float = Field(default=30, gt=0, description="批量交换超时（秒）")
    probe_timeout_s: float = Field(default=5, gt=0, description="连通性探测超时（秒）")


# 环境变量 -> (字段名, 类型, 默认值)
_NUMERIC_ENV_FIELDS: dict[str, tuple[str, type, float]] = {
    "TASKSYNC_BATCH_SIZE": ("batch_size", int, 10),
    "TASKSYNC_MAX_RETRIES": ("max_retries", int, 3),
    "TASKSYNC_TIMEOUT_S": ("timeout_s", float, 30),
    "TASKSYNC_PROBE_TIMEOUT_S": ("probe_timeout_s", float, 5),
}


def load_sync_config() -> SyncConfig:
    """从环境变量加载同步配置

    数值型环境变量无法解析或超出取值范围时记录告警并使用默认值，不阻塞启动。

    Returns:
        SyncConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKSYNC_API_BASE_URL"):
        kwargs["api_base_url"] = val

    for env_var, (field_name, cast, fallback) in _NUMERIC_ENV_FIELDS.items():
        val = os.environ.get(env_var)
        if not val:
            continue
        try:
            value = cast(val)
            # 按字段约束单独校验（pydantic.ValidationError 是 ValueError 子类）
            SyncConfig(**{field_name: value})
            kwargs[field_name] = value
        except ValueError:
            log.warning(
                "invalid_sync_config",
                env_var=env_var,
                value=val,
                fallback=fallback,
            )
            # 使用默认值

    return SyncConfig(**kwargs)
