from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

__all__ = [
    "TaskStatus", "ReminderTask", "ParsedCommand", "Registration",
]


# ----------------- ReminderTask 数据模型 ----------------
class TaskStatus(str, Enum):
    PENDING = "pending"      # 等待到期
    SENDING = "sending"      # 已被调度器认领, 正在发送
    DELIVERED = "delivered"  # 已成功发送, 终态
    FAILED = "failed"        # 发送失败或发送中断, 终态, 不重试


@dataclass(frozen=True)
class ReminderTask:
    """一条待发送的提醒

    注意: due_at 只精确到分钟 (秒与微秒恒为 0), 创建后不可修改
    """
    recipient: int  # Telegram chat_id
    body: str
    due_at: datetime
    task_id: Optional[int] = None  # 由存储层在写入时分配
    status: TaskStatus = TaskStatus.PENDING


# ----------------- 指令解析结果 ----------------
@dataclass(frozen=True)
class ParsedCommand:
    due_at: datetime
    body: str


class Registration(str, Enum):
    ACK = "ack"    # 已保存, 由调用方发送确认消息
    NACK = "nack"  # 无法解析, 未写入任何数据
