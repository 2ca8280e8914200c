"""事件总线模块，定义了事件总线类 Bus 及事件名集合 E

提醒的创建、发送、失败以及每次调度扫描都会在总线上广播,
目前由 metrics 模块订阅用于统计
"""

from __future__ import annotations
from pyee.asyncio import AsyncIOEventEmitter
from typing import Awaitable, Callable

from remindbot.logger import logger

AsyncHandler = Callable[..., Awaitable[None]]

# 事件名集中定义
class E:
    IO_MESSAGE_RECEIVED = "io.message_received"
    IO_MESSAGE_SENT = "io.message_sent"
    TASK_CREATED = "task.created"
    TASK_DELIVERED = "task.delivered"
    TASK_FAILED = "task.failed"
    SCHEDULER_SWEEP = "scheduler.sweep"


class Bus(AsyncIOEventEmitter):
    def on(self, event: str) -> Callable[[AsyncHandler], AsyncHandler]:
        """注册事件处理器装饰器"""
        def decorator(handler: AsyncHandler) -> AsyncHandler:
            logger.debug(f"注册事件处理器: {event} -> {handler.__name__}")
            super(Bus, self).on(event, handler)
            return handler

        return decorator


bus = Bus()

__all__ = ["bus", "E", "Bus"]
