from datetime import datetime

import pytest

from remindbot.channels.base import DispatchError, MessageDispatcher
from remindbot.storage import db_config
from remindbot.storage.task import TaskStore


class FakeDispatcher(MessageDispatcher):
    """记录所有发送请求, 对 fail_for 中的 chat_id 模拟发送失败"""

    def __init__(self, fail_for=()):
        self.sent: list[tuple[int, str]] = []
        self.fail_for = set(fail_for)

    async def _deliver(self, recipient: int, text: str) -> None:
        if recipient in self.fail_for:
            raise DispatchError("simulated network error")
        self.sent.append((recipient, text))


@pytest.fixture
async def conn(tmp_path):
    conn = await db_config.init_db(str(tmp_path / "data" / "test.db"))
    yield conn
    await db_config.close_db(conn)


@pytest.fixture
def store(conn):
    return TaskStore(conn)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def due_minute():
    return datetime(2025, 12, 31, 23, 45)
