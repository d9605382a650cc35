"""TaskService 测试 -- 变更与入队的耦合"""

from datetime import UTC, datetime, timedelta

from tasksync.core.models import QueueOperation, SyncStatus
from tasksync.gateway.services.task_service import TaskService, _next_updated_at


class TestTaskService:
    async def test_every_mutation_enqueues_one_item(self, store_group):
        service = TaskService(store_group)

        task = await service.create_task("Buy milk")
        await service.update_task(task.id, title="Buy oat milk")
        await service.delete_task(task.id)

        items = await store_group.queue_store.get_all_items()
        assert [i.operation for i in items] == [
            QueueOperation.CREATE,
            QueueOperation.UPDATE,
            QueueOperation.DELETE,
        ]
        assert [i.data.title for i in items] == ["Buy milk", "Buy oat milk", "Buy oat milk"]

    async def test_update_resets_sync_status(self, store_group):
        service = TaskService(store_group)
        task = await service.create_task("Buy milk")
        await store_group.task_store.mark_synced(task.id, datetime.now(UTC), "srv-1")
        await store_group.conn.commit()

        updated = await service.update_task(task.id, completed=True)

        assert updated.sync_status == SyncStatus.PENDING
        assert updated.server_id == "srv-1"
        assert updated.updated_at >= task.updated_at

    async def test_missing_task_not_enqueued(self, store_group):
        service = TaskService(store_group)

        assert await service.update_task("01JNOTEXIST000000000000000", title="x") is None
        assert await service.delete_task("01JNOTEXIST000000000000000") is False
        assert await store_group.queue_store.count_items() == 0

    def test_updated_at_never_moves_backwards(self):
        future = datetime.now(UTC) + timedelta(minutes=10)
        assert _next_updated_at(future) == future

        past = datetime.now(UTC) - timedelta(minutes=10)
        assert _next_updated_at(past) > past
