from remindbot.core.parser import CommandParseError, parse_command
from remindbot.datamodel import Registration, ReminderTask
from remindbot.logger import logger
from remindbot.storage.task import TaskStore

__all__ = ["TaskRegistrar"]


class TaskRegistrar:
    """把一条收到的文本解析并保存为提醒任务

    只返回处理结果, 不发送任何消息; 回复的措辞和发送由调用方决定。
    存储失败时 StoreError 原样抛出给调用方。
    """

    def __init__(self, store: TaskStore) -> None:
        self.store = store

    async def register_task(self, recipient: int, raw_text: str) -> Registration:
        try:
            parsed = parse_command(raw_text)
        except CommandParseError as e:
            logger.warning(f"chat_id={recipient} 的输入无法解析, 未保存: {e}")
            return Registration.NACK

        task = ReminderTask(recipient=recipient, body=parsed.body, due_at=parsed.due_at)
        task_id = await self.store.save(task)
        logger.info(f"提醒已保存: task_id={task_id}, chat_id={recipient}, due_at={parsed.due_at:%Y-%m-%d %H:%M}")
        return Registration.ACK
