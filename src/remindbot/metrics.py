"""
一个简单的运行时指标收集类，统计消息流量、提醒的创建与发送情况以及调度扫描次数。
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from remindbot.events import bus, E


@dataclass
class RuntimeMetrics:
    msg_in_count: int = 0
    msg_out_count: int = 0
    task_created_count: int = 0
    task_delivered_count: int = 0
    task_failed_count: int = 0
    sweep_count: int = 0
    last_sweep_at: float | None = None

    def record_msg_in(self) -> None:
        self.msg_in_count += 1

    def record_msg_out(self) -> None:
        self.msg_out_count += 1

    def record_task_created(self) -> None:
        self.task_created_count += 1

    def record_task_delivered(self) -> None:
        self.task_delivered_count += 1

    def record_task_failed(self) -> None:
        self.task_failed_count += 1

    def record_sweep(self) -> None:
        self.sweep_count += 1
        self.last_sweep_at = time.time()

    def snapshot(self) -> dict:
        return {
            "msg_in_count": self.msg_in_count,
            "msg_out_count": self.msg_out_count,
            "task_created_count": self.task_created_count,
            "task_delivered_count": self.task_delivered_count,
            "task_failed_count": self.task_failed_count,
            "sweep_count": self.sweep_count,
            "last_sweep_at_epoch": self.last_sweep_at,
            "last_sweep_at_utc": (
                time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.last_sweep_at))
                if self.last_sweep_at is not None
                else None
            ),
        }


runtime_metrics = RuntimeMetrics()


@bus.on(E.IO_MESSAGE_RECEIVED)
async def _on_message_received(*args, **kwargs) -> None:
    runtime_metrics.record_msg_in()

@bus.on(E.IO_MESSAGE_SENT)
async def _on_message_sent(*args, **kwargs) -> None:
    runtime_metrics.record_msg_out()

@bus.on(E.TASK_CREATED)
async def _on_task_created(*args, **kwargs) -> None:
    runtime_metrics.record_task_created()

@bus.on(E.TASK_DELIVERED)
async def _on_task_delivered(*args, **kwargs) -> None:
    runtime_metrics.record_task_delivered()

@bus.on(E.TASK_FAILED)
async def _on_task_failed(*args, **kwargs) -> None:
    runtime_metrics.record_task_failed()

@bus.on(E.SCHEDULER_SWEEP)
async def _on_sweep(*args, **kwargs) -> None:
    runtime_metrics.record_sweep()


__all__ = ["RuntimeMetrics", "runtime_metrics"]
