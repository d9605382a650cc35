"""冲突解决 -- last-write-wins

纯函数：比较本地与远端快照的 updated_at，严格更新的一方获胜；
时间相同时本地获胜。
不修改任何存储，获胜快照的落盘由 SyncOrchestrator 负责。
"""

import structlog

from tasksync.core.models import Task

from .models import ConflictResolution, ConflictWinner

log = structlog.get_logger()


def resolve_conflict(local: Task, remote: Task) -> ConflictResolution:
    """last-write-wins 冲突解决

    Args:
        local: 冲突解决时重新读取的本地 Task
        remote: 远端返回的 resolved_data 快照

    Returns:
        ConflictResolution，winner 标明获胜方，task 为获胜快照
    """
    if remote.updated_at > local.updated_at:
        winner = ConflictWinner.REMOTE
        task = remote
    else:
        winner = ConflictWinner.LOCAL
        task = local

    log.info(
        "conflict_resolved",
        task_id=local.id,
        winner=winner.value,
        local_updated_at=local.updated_at.isoformat(),
        remote_updated_at=remote.updated_at.isoformat(),
    )
    return ConflictResolution(winner=winner, task=task)
