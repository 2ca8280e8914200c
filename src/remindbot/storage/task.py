"""提醒任务存储

任务只写一次, 之后只会推进状态: pending -> sending -> delivered / failed。
所有查询只返回 pending 的任务, 已发送或已失败的任务不会再被任何扫描匹配到。
"""

import asyncio
from datetime import datetime
from functools import wraps

import aiosqlite

from remindbot.datamodel import ReminderTask, TaskStatus
from remindbot.events import bus, E
from remindbot.logger import logger
from remindbot.utils import from_min_str, to_min_str, truncate_to_minute

__all__ = ["StoreError", "TaskStore"]

_COLUMNS = "task_id, chat_id, body, due_at_min, status"


class StoreError(RuntimeError):
    """存储层不可用或写入被拒绝"""


def _store_op(func):
    """把数据库异常统一转换为 StoreError"""
    @wraps(func)
    async def decorated(self: "TaskStore", *args, **kwargs):
        if self.conn is None:
            raise StoreError("数据库未初始化，请先调用 init_db()")
        try:
            return await func(self, *args, **kwargs)
        except (aiosqlite.Error, ValueError) as e:
            raise StoreError(f"{func.__name__} 失败: {e}") from e
    return decorated


def _row_to_task(row) -> ReminderTask:
    return ReminderTask(
        task_id=row[0],
        recipient=row[1],
        body=row[2],
        due_at=from_min_str(row[3]),
        status=TaskStatus(row[4]),
    )


class TaskStore:
    def __init__(self, conn: aiosqlite.Connection | None) -> None:
        self.conn = conn
        self._write_lock = asyncio.Lock()

    @_store_op
    async def save(self, task: ReminderTask) -> int:
        """保存新任务, 返回分配的 task_id"""
        due_at_min = to_min_str(truncate_to_minute(task.due_at))
        async with self._write_lock:
            async with self.conn.execute(
                "INSERT INTO notification_tasks (chat_id, body, due_at_min, status) VALUES (?, ?, ?, ?)",
                (task.recipient, task.body, due_at_min, TaskStatus.PENDING.value),
            ) as cursor:
                task_id = cursor.lastrowid
            await self.conn.commit()
        logger.trace(f"保存提醒: task_id={task_id}, chat_id={task.recipient}, due_at={due_at_min}")
        bus.emit(E.TASK_CREATED, task_id=task_id, recipient=task.recipient, due_at_min=due_at_min)
        return task_id

    @_store_op
    async def get(self, task_id: int) -> ReminderTask | None:
        async with self.conn.execute(
            f"SELECT {_COLUMNS} FROM notification_tasks WHERE task_id = ?", (task_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_task(row) if row else None

    @_store_op
    async def find_due_at(self, when: datetime) -> list[ReminderTask]:
        """获取到期时间恰好等于 when 所在分钟的未发送任务"""
        async with self.conn.execute(
            f"SELECT {_COLUMNS} FROM notification_tasks WHERE status = ? AND due_at_min = ? ORDER BY task_id",
            (TaskStatus.PENDING.value, to_min_str(truncate_to_minute(when))),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_task(row) for row in rows]

    @_store_op
    async def find_due_by(self, when: datetime) -> list[ReminderTask]:
        """获取到期时间不晚于 when 所在分钟的未发送任务, 包括错过扫描的任务"""
        async with self.conn.execute(
            f"SELECT {_COLUMNS} FROM notification_tasks WHERE status = ? AND due_at_min <= ? "
            "ORDER BY due_at_min, task_id",
            (TaskStatus.PENDING.value, to_min_str(truncate_to_minute(when))),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_task(row) for row in rows]

    async def _transition(self, task_id: int, from_status: TaskStatus, to_status: TaskStatus) -> bool:
        async with self._write_lock:
            async with self.conn.execute(
                "UPDATE notification_tasks SET status = ?, updated_at_utc = CURRENT_TIMESTAMP "
                "WHERE task_id = ? AND status = ?",
                (to_status.value, task_id, from_status.value),
            ) as cursor:
                changed = cursor.rowcount
            await self.conn.commit()
        return changed == 1

    @_store_op
    async def claim(self, task_id: int) -> bool:
        """原子地把任务从 pending 认领为 sending, 只有一个调用方能认领成功"""
        return await self._transition(task_id, TaskStatus.PENDING, TaskStatus.SENDING)

    @_store_op
    async def mark_delivered(self, task_id: int) -> bool:
        return await self._transition(task_id, TaskStatus.SENDING, TaskStatus.DELIVERED)

    @_store_op
    async def mark_failed(self, task_id: int) -> bool:
        return await self._transition(task_id, TaskStatus.SENDING, TaskStatus.FAILED)

    @_store_op
    async def recover_interrupted(self) -> int:
        """启动时把上次进程退出时仍处于 sending 的任务标记为 failed

        无法确认这些任务是否已经发出, 宁可漏发也不重复发送
        """
        async with self._write_lock:
            async with self.conn.execute(
                "UPDATE notification_tasks SET status = ?, updated_at_utc = CURRENT_TIMESTAMP WHERE status = ?",
                (TaskStatus.FAILED.value, TaskStatus.SENDING.value),
            ) as cursor:
                changed = cursor.rowcount
            await self.conn.commit()
        if changed:
            logger.warning(f"{changed} 条提醒在上次退出时发送中断, 已标记为 failed")
        return changed
