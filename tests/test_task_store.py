from datetime import datetime, timedelta

import pytest

from remindbot.datamodel import ReminderTask, TaskStatus
from remindbot.storage import db_config
from remindbot.storage.task import StoreError, TaskStore


async def _save(store: TaskStore, due_at: datetime, recipient: int = 42, body: str = "Pick up the cake") -> int:
    return await store.save(ReminderTask(recipient=recipient, body=body, due_at=due_at))


class TestSchema:
    async def test_init_db_sets_user_version(self, conn):
        async with conn.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
        assert row[0] == db_config.SCHEMA_VERSION

    async def test_init_db_is_idempotent(self, tmp_path):
        path = str(tmp_path / "again.db")
        first = await db_config.init_db(path)
        await TaskStore(first).save(ReminderTask(recipient=1, body="x", due_at=datetime(2030, 1, 1, 8, 0)))
        await db_config.close_db(first)

        second = await db_config.init_db(path)
        try:
            assert len(await TaskStore(second).find_due_at(datetime(2030, 1, 1, 8, 0))) == 1
        finally:
            await db_config.close_db(second)


class TestSave:
    async def test_save_assigns_distinct_ids(self, store, due_minute):
        first = await _save(store, due_minute)
        second = await _save(store, due_minute)
        assert first != second

    async def test_saved_task_round_trips(self, store, due_minute):
        task_id = await _save(store, due_minute)
        task = await store.get(task_id)
        assert task == ReminderTask(
            task_id=task_id, recipient=42, body="Pick up the cake", due_at=due_minute, status=TaskStatus.PENDING
        )

    async def test_save_truncates_to_minute(self, store, due_minute):
        task_id = await _save(store, due_minute.replace(second=59, microsecond=123))
        assert (await store.get(task_id)).due_at == due_minute

    async def test_get_unknown_returns_none(self, store):
        assert await store.get(9999) is None


class TestFindDue:
    async def test_exact_minute_matching(self, store, due_minute):
        task_id = await _save(store, due_minute)
        one_minute = timedelta(minutes=1)

        assert [t.task_id for t in await store.find_due_at(due_minute)] == [task_id]
        assert await store.find_due_at(due_minute - one_minute) == []
        assert await store.find_due_at(due_minute + one_minute) == []

    async def test_exact_lookup_ignores_seconds_of_query(self, store, due_minute):
        await _save(store, due_minute)
        assert len(await store.find_due_at(due_minute.replace(second=30))) == 1

    async def test_find_due_by_includes_overdue_tasks(self, store, due_minute):
        early = await _save(store, due_minute - timedelta(days=1))
        on_time = await _save(store, due_minute)
        await _save(store, due_minute + timedelta(minutes=1))

        found = await store.find_due_by(due_minute)
        assert [t.task_id for t in found] == [early, on_time]

    async def test_non_pending_tasks_are_excluded(self, store, due_minute):
        delivered = await _save(store, due_minute)
        failed = await _save(store, due_minute)
        pending = await _save(store, due_minute)

        assert await store.claim(delivered)
        assert await store.mark_delivered(delivered)
        assert await store.claim(failed)
        assert await store.mark_failed(failed)

        assert [t.task_id for t in await store.find_due_at(due_minute)] == [pending]
        assert [t.task_id for t in await store.find_due_by(due_minute + timedelta(days=1))] == [pending]


    async def test_overdue_task_before_year_1000_is_found(self, store):
        task_id = await _save(store, datetime(999, 1, 1, 10, 0), body="old")

        found = await store.find_due_by(datetime(2026, 1, 1))
        assert [t.task_id for t in found] == [task_id]
        assert found[0].due_at == datetime(999, 1, 1, 10, 0)


class TestStatusTransitions:
    async def test_claim_succeeds_only_once(self, store, due_minute):
        task_id = await _save(store, due_minute)
        assert await store.claim(task_id) is True
        assert await store.claim(task_id) is False
        assert (await store.get(task_id)).status is TaskStatus.SENDING

    async def test_mark_delivered_requires_claim(self, store, due_minute):
        task_id = await _save(store, due_minute)
        assert await store.mark_delivered(task_id) is False
        assert (await store.get(task_id)).status is TaskStatus.PENDING

    async def test_recover_interrupted_marks_sending_as_failed(self, store, due_minute):
        interrupted = await _save(store, due_minute)
        untouched = await _save(store, due_minute)
        await store.claim(interrupted)

        assert await store.recover_interrupted() == 1
        assert (await store.get(interrupted)).status is TaskStatus.FAILED
        assert (await store.get(untouched)).status is TaskStatus.PENDING


class TestStoreErrors:
    async def test_uninitialised_store_raises_store_error(self, due_minute):
        with pytest.raises(StoreError):
            await _save(TaskStore(None), due_minute)

    async def test_closed_connection_raises_store_error(self, tmp_path, due_minute):
        conn = await db_config.init_db(str(tmp_path / "closed.db"))
        await conn.close()
        with pytest.raises(StoreError):
            await _save(TaskStore(conn), due_minute)
