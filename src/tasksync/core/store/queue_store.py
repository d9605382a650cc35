"""SyncQueueStore SQLite 实现

sync_queue 表是待同步变更的持久化日志：
- 追加写入，读取时按 (created_at, seq) 升序
- 仅允许更新 retry_count / error_message 两列
- 同步成功或永久失败后删除

注意：此处方法均不自动提交事务，需由调用方管理事务。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.enums import QueueOperation
from ..models.queue import QueueItem
from ..models.task import Task
from .task_store import format_ts

_QUEUE_COLUMNS = "seq, id, task_id, operation, data, created_at, retry_count, error_message"


class SqliteSyncQueueStore:
    """SyncQueueStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert_item(self, item: QueueItem) -> int:
        """追加队列项，返回插入序号"""
        cursor = await self._conn.execute(
            """
            INSERT INTO sync_queue (id, task_id, operation, data, created_at,
                                    retry_count, error_message)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.task_id,
                item.operation.value,
                item.data.model_dump_json(),
                format_ts(item.created_at),
                item.retry_count,
                item.error_message,
            ),
        )
        return cursor.lastrowid

    async def get_all_items(self) -> list[QueueItem]:
        """查询所有队列项，按入队时间正序（最早的在前）"""
        cursor = await self._conn.execute(
            f"SELECT {_QUEUE_COLUMNS} FROM sync_queue ORDER BY created_at ASC, seq ASC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_item(row) for row in rows]

    async def get_items_for_task(self, task_id: str) -> list[QueueItem]:
        """查询指定 Task 的所有队列项"""
        cursor = await self._conn.execute(
            f"SELECT {_QUEUE_COLUMNS} FROM sync_queue WHERE task_id = ? "
            "ORDER BY created_at ASC, seq ASC",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_item(row) for row in rows]

    async def update_item(self, item: QueueItem) -> None:
        """更新重试记录"""
        await self._conn.execute(
            "UPDATE sync_queue SET retry_count = ?, error_message = ? WHERE id = ?",
            (item.retry_count, item.error_message, item.id),
        )

    async def delete_for_task(self, task_id: str, through_seq: int | None = None) -> int:
        """删除指定 Task 的队列项

        through_seq 不为 None 时仅删除 seq <= through_seq 的项，
        同步过程中新入队的变更得以保留。

        Returns:
            删除的行数
        """
        if through_seq is None:
            cursor = await self._conn.execute(
                "DELETE FROM sync_queue WHERE task_id = ?",
                (task_id,),
            )
        else:
            cursor = await self._conn.execute(
                "DELETE FROM sync_queue WHERE task_id = ? AND seq <= ?",
                (task_id, through_seq),
            )
        return cursor.rowcount

    async def delete_item(self, item_id: str) -> int:
        """删除单个队列项"""
        cursor = await self._conn.execute(
            "DELETE FROM sync_queue WHERE id = ?",
            (item_id,),
        )
        return cursor.rowcount

    async def count_items(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM sync_queue")
        row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> QueueItem:
        """将数据库行转换为 QueueItem 模型"""
        return QueueItem(
            seq=row[0],
            id=row[1],
            task_id=row[2],
            operation=QueueOperation(row[3]),
            data=Task.model_validate(json.loads(row[4])),
            created_at=datetime.fromisoformat(row[5]),
            retry_count=row[6],
            error_message=row[7],
        )
