"""CLI 入口模块 -- python -m tasksync.sync <command>

支持的命令：
  run     执行一次同步并输出结果
  status  输出待同步数量、最近同步时间与远端可达性
"""

import asyncio
import sys

from tasksync.core.config import get_db_path

from .config import load_sync_config

_USAGE = """用法: python -m tasksync.sync <command>
命令:
  run     执行一次同步
  status  查看同步状态"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "run":
        exit_code = asyncio.run(run_sync())
        sys.exit(exit_code)
    elif command == "status":
        asyncio.run(show_status())
    else:
        print(f"未知命令: {command}")
        print("可用命令: run, status")
        sys.exit(1)


async def run_sync() -> int:
    """执行一次同步，返回进程退出码"""
    from .orchestrator import create_orchestrator
    from tasksync.core.store import create_store_group

    db_path = get_db_path()
    config = load_sync_config()

    print(f"数据库路径: {db_path}")
    print(f"远端地址: {config.api_base_url}")

    store_group = await create_store_group(db_path)
    try:
        orchestrator = create_orchestrator(store_group, config)
        result = await orchestrator.synchronize()
    finally:
        await store_group.conn.close()

    print(
        f"同步完成: success={result.success} "
        f"synced={result.synced_items} failed={result.failed_items}"
    )
    for record in result.errors:
        print(f"  [{record.kind.value}] {record.operation.value} {record.task_id}: {record.error}")

    return 0 if result.success else 2


async def show_status() -> None:
    """输出同步状态"""
    from .orchestrator import create_orchestrator
    from tasksync.core.store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        orchestrator = create_orchestrator(store_group, load_sync_config())
        report = await orchestrator.get_status()
    finally:
        await store_group.conn.close()

    last_synced = report.last_synced_at.isoformat() if report.last_synced_at else "-"
    print(f"待同步: {report.pending_count}")
    print(f"最近同步: {last_synced}")
    print(f"远端可达: {report.server_reachable}")


if __name__ == "__main__":
    main()
