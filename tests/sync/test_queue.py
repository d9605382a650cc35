"""MutationQueue 测试

测试内容：
1. enqueue 追加到队尾，retry_count=0
2. 持久化失败抛出 QueuePersistenceError 且不留半成品
3. update / remove / remove_item / pending_count
"""

import pytest
from tasksync.core.models import QueueOperation
from tasksync.sync.exceptions import QueuePersistenceError
from tasksync.sync.queue import MutationQueue


@pytest.fixture
def queue(store_group) -> MutationQueue:
    return MutationQueue(store_group.conn, store_group.queue_store)


async def _seed(store_group, task):
    await store_group.task_store.create_task(task)
    await store_group.conn.commit()


class TestEnqueue:
    async def test_enqueue_appends_in_order(self, queue, store_group, make_task):
        task = make_task("t-1")
        await _seed(store_group, task)

        first = await queue.enqueue("t-1", QueueOperation.CREATE, task)
        second = await queue.enqueue(
            "t-1", QueueOperation.UPDATE, task.model_copy(update={"completed": True})
        )

        assert first.retry_count == 0
        assert first.error_message is None
        assert first.seq < second.seq

        pending = await queue.all_pending()
        assert [i.id for i in pending] == [first.id, second.id]
        assert pending[1].data.completed is True

    async def test_enqueue_failure_raises(self, queue, make_task):
        # 不存在的 task_id 违反外键约束
        task = make_task("t-missing")
        with pytest.raises(QueuePersistenceError) as exc_info:
            await queue.enqueue("t-missing", QueueOperation.CREATE, task)

        assert exc_info.value.recoverable is False
        assert exc_info.value.original_error is not None
        assert await queue.pending_count() == 0


class TestQueueMaintenance:
    async def test_update_persists_retry_state(self, queue, store_group, make_task):
        task = make_task("t-1")
        await _seed(store_group, task)
        item = await queue.enqueue("t-1", QueueOperation.CREATE, task)

        await queue.update(item.model_copy(update={"retry_count": 1, "error_message": "HTTP 500"}))

        [reloaded] = await queue.all_pending()
        assert reloaded.retry_count == 1
        assert reloaded.error_message == "HTTP 500"

    async def test_remove_by_task(self, queue, store_group, make_task):
        t1, t2 = make_task("t-1"), make_task("t-2")
        await _seed(store_group, t1)
        await _seed(store_group, t2)
        await queue.enqueue("t-1", QueueOperation.CREATE, t1)
        await queue.enqueue("t-1", QueueOperation.UPDATE, t1)
        keep = await queue.enqueue("t-2", QueueOperation.CREATE, t2)

        assert await queue.remove("t-1") == 2
        assert [i.id for i in await queue.all_pending()] == [keep.id]
        assert await queue.pending_count() == 1

    async def test_remove_through_seq_keeps_later_items(self, queue, store_group, make_task):
        task = make_task("t-1")
        await _seed(store_group, task)
        first = await queue.enqueue("t-1", QueueOperation.CREATE, task)
        later = await queue.enqueue("t-1", QueueOperation.DELETE, task)

        assert await queue.remove("t-1", through_seq=first.seq) == 1
        assert [i.id for i in await queue.all_pending()] == [later.id]

    async def test_remove_item(self, queue, store_group, make_task):
        task = make_task("t-1")
        await _seed(store_group, task)
        first = await queue.enqueue("t-1", QueueOperation.CREATE, task)
        second = await queue.enqueue("t-1", QueueOperation.UPDATE, task)

        assert await queue.remove_item(first.id) == 1
        assert [i.id for i in await queue.all_pending()] == [second.id]
