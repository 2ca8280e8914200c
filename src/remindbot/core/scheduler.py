"""提醒调度器

注意: 提醒时间只精确到分钟。调度器在每分钟的第 0 秒附近醒来一次, 把所有
到期时间不晚于当前分钟且仍为 pending 的任务逐个认领、发送并标记结果。

每个任务先原子认领 (pending -> sending) 再发送, 发送成功才标记 delivered,
发送失败标记 failed 且不重试, 因此同一任务最多只会被发送一次。
"""

import asyncio
import time
from datetime import datetime
from typing import Callable

from remindbot.channels.base import MessageDispatcher
from remindbot.datamodel import ReminderTask
from remindbot.events import bus, E
from remindbot.logger import logger
from remindbot.metrics import runtime_metrics
from remindbot.storage.task import StoreError, TaskStore
from remindbot.utils import now_local_min, to_min_str, truncate_to_minute

__all__ = ["ReminderScheduler"]

# 醒来时刻相对整分钟的偏移, 避免计时误差导致在上一分钟的末尾醒来
_TICK_OFFSET_SECONDS = 0.5


class ReminderScheduler:
    def __init__(
        self,
        store: TaskStore,
        dispatcher: MessageDispatcher,
        interval_seconds: float = 60.0,
        clock: Callable[[], datetime] = now_local_min,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._sweep_lock = asyncio.Lock()
        self._shutdown_event: asyncio.Event | None = None
        self._last_sweep_at_epoch: float | None = None

    def get_status(self) -> dict[str, object]:
        running = self._shutdown_event is not None and not self._shutdown_event.is_set()
        return {
            "running": running,
            "sweeping": self._sweep_lock.locked(),
            "last_sweep_at_epoch": self._last_sweep_at_epoch,
            "metrics": runtime_metrics.snapshot(),
        }

    def seconds_until_next_tick(self, now_epoch: float | None = None) -> float:
        if now_epoch is None:
            now_epoch = time.time()
        return self.interval_seconds - (now_epoch % self.interval_seconds) + _TICK_OFFSET_SECONDS

    async def run_loop(self, shutdown_event: asyncio.Event) -> None:
        self._shutdown_event = shutdown_event
        logger.info("提醒调度循环已启动")

        while not shutdown_event.is_set():
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"提醒扫描发生预期外的错误: {e}", exc_info=e)

            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self.seconds_until_next_tick())
            except asyncio.TimeoutError:
                pass

        logger.info("提醒调度循环已关闭")

    async def sweep(self, now: datetime | None = None) -> int:
        """执行一次扫描, 返回成功发送的提醒数量

        上一次扫描尚未结束时直接跳过, 不会有两次扫描同时进行
        """
        if self._sweep_lock.locked():
            logger.warning("上一次提醒扫描尚未结束, 跳过本次扫描")
            return 0

        async with self._sweep_lock:
            now = truncate_to_minute(now if now is not None else self.clock())
            self._last_sweep_at_epoch = time.time()
            bus.emit(E.SCHEDULER_SWEEP, now_min=to_min_str(now))

            try:
                tasks = await self.store.find_due_by(now)
            except StoreError as e:
                logger.error(f"查询到期提醒失败, 本次扫描中止: {e}", exc_info=e)
                return 0

            if not tasks:
                logger.trace(f"[{to_min_str(now)}] 没有到期的提醒")
                return 0

            logger.debug(f"[{to_min_str(now)}] 发现 {len(tasks)} 条到期提醒")
            delivered = 0
            for task in tasks:
                if await self._deliver(task):
                    delivered += 1
            return delivered

    async def _deliver(self, task: ReminderTask) -> bool:
        try:
            if not await self.store.claim(task.task_id):
                logger.debug(f"提醒 task_id={task.task_id} 已被处理, 跳过")
                return False

            try:
                sent = await self.dispatcher.send(task.recipient, task.body)
            except Exception as e:
                logger.error(f"发送提醒 task_id={task.task_id} 时发生预期外的错误: {e}", exc_info=e)
                sent = False

            if sent:
                await self.store.mark_delivered(task.task_id)
                bus.emit(E.TASK_DELIVERED, task_id=task.task_id, recipient=task.recipient)
                logger.info(f"提醒已发送: task_id={task.task_id}, chat_id={task.recipient}")
                return True

            await self.store.mark_failed(task.task_id)
            bus.emit(E.TASK_FAILED, task_id=task.task_id, recipient=task.recipient)
            logger.warning(f"提醒发送失败, 不再重试: task_id={task.task_id}, chat_id={task.recipient}")
            return False
        except StoreError as e:
            logger.error(f"更新提醒 task_id={task.task_id} 状态失败: {e}", exc_info=e)
            return False
