"""TaskStore SQLite 实现

软删除的 Task 不出现在 get_task / list_tasks 中，
但同步引擎可通过 include_deleted=True 读取（删除操作同样需要回写同步状态）。
此处仅提供数据库操作，不自动提交事务，由调用方管理事务。
"""

from datetime import UTC, datetime

import aiosqlite

from ..models.enums import SyncStatus
from ..models.task import Task

_TASK_COLUMNS = (
    "id, title, description, completed, created_at, updated_at, "
    "is_deleted, sync_status, server_id, last_synced_at"
)


def format_ts(value: datetime) -> str:
    """统一的时间戳存储格式（UTC + 微秒），保证字符串序与时间序一致"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_TASK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.id,
                task.title,
                task.description,
                int(task.completed),
                format_ts(task.created_at),
                format_ts(task.updated_at),
                int(task.is_deleted),
                task.sync_status.value,
                task.server_id,
                format_ts(task.last_synced_at) if task.last_synced_at else None,
            ),
        )

    async def save_task(self, task: Task) -> None:
        """整行覆盖写入已存在的任务（created_at 不变）"""
        await self._conn.execute(
            """
            UPDATE tasks
            SET title = ?, description = ?, completed = ?, updated_at = ?,
                is_deleted = ?, sync_status = ?, server_id = ?, last_synced_at = ?
            WHERE id = ?
            """,
            (
                task.title,
                task.description,
                int(task.completed),
                format_ts(task.updated_at),
                int(task.is_deleted),
                task.sync_status.value,
                task.server_id,
                format_ts(task.last_synced_at) if task.last_synced_at else None,
                task.id,
            ),
        )

    async def get_task(self, task_id: str, include_deleted: bool = False) -> Task | None:
        """根据 id 查询任务，默认排除软删除记录"""
        sql = f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?"
        if not include_deleted:
            sql += " AND is_deleted = 0"
        cursor = await self._conn.execute(sql, (task_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self) -> list[Task]:
        """查询所有未删除任务，按 created_at 倒序"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE is_deleted = 0 "
            "ORDER BY created_at DESC, rowid DESC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_tasks_by_sync_status(self, statuses: set[SyncStatus]) -> list[Task]:
        """按同步状态筛选任务（包含软删除记录，删除同样需要同步）"""
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE sync_status IN ({placeholders}) "
            "ORDER BY updated_at ASC",
            tuple(s.value for s in sorted(statuses)),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def mark_synced(
        self,
        task_id: str,
        synced_at: datetime,
        server_id: str | None = None,
        status: SyncStatus = SyncStatus.SYNCED,
    ) -> None:
        """记录一次同步成功；server_id 为 None 时保留原值

        Args:
            status: 同步后的状态，仍有更晚的待同步变更时为 pending
        """
        await self._conn.execute(
            """
            UPDATE tasks
            SET sync_status = ?, last_synced_at = ?,
                server_id = COALESCE(?, server_id)
            WHERE id = ?
            """,
            (status.value, format_ts(synced_at), server_id, task_id),
        )

    async def mark_error(self, task_id: str) -> None:
        """标记永久同步失败"""
        await self._conn.execute(
            "UPDATE tasks SET sync_status = ? WHERE id = ?",
            (SyncStatus.ERROR.value, task_id),
        )

    async def get_last_synced_at(self) -> datetime | None:
        """所有任务中最近一次同步成功时间"""
        cursor = await self._conn.execute(
            "SELECT MAX(last_synced_at) FROM tasks WHERE last_synced_at IS NOT NULL"
        )
        row = await cursor.fetchone()
        return parse_ts(row[0]) if row else None

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            id=row[0],
            title=row[1],
            description=row[2],
            completed=bool(row[3]),
            created_at=datetime.fromisoformat(row[4]),
            updated_at=datetime.fromisoformat(row[5]),
            is_deleted=bool(row[6]),
            sync_status=SyncStatus(row[7]),
            server_id=row[8],
            last_synced_at=parse_ts(row[9]),
        )
