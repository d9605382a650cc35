"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径等本地存储相关的可配置常量。
同步引擎的运行参数见 tasksync.sync.config。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKSYNC_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKSYNC_DB_PATH",
        str(_get_base_dir() / "sqlite" / "tasksync.db"),
    )


# 任务标题最大长度
TASK_TITLE_MAX_LENGTH: int = int(
    os.environ.get("TASKSYNC_TASK_TITLE_MAX_LENGTH", "200")
)
