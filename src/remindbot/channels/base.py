from abc import ABC, abstractmethod

from remindbot.events import bus, E
from remindbot.logger import logger

__all__ = ["DispatchError", "MessageDispatcher"]


class DispatchError(RuntimeError):
    """发送消息失败 (网络错误、超时、平台拒绝等)"""


class MessageDispatcher(ABC):
    """向指定聊天发送纯文本消息

    子类只需实现 _deliver, 失败时抛出 DispatchError。
    send 不会向调用方抛出发送异常, 只返回是否成功, 每次调用最多尝试一次。
    """

    @abstractmethod
    async def _deliver(self, recipient: int, text: str) -> None:
        pass

    async def send(self, recipient: int, text: str) -> bool:
        try:
            await self._deliver(recipient, text)
        except DispatchError as e:
            logger.error(f"向 chat_id={recipient} 发送消息失败: {e}", exc_info=e)
            return False
        bus.emit(E.IO_MESSAGE_SENT, recipient=recipient)
        return True
