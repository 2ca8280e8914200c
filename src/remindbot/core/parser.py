"""提醒指令解析

指令格式固定为 `DD.MM.YYYY HH:MM<一个空白字符><提醒内容>`:
- 日期时间段定长 16 个字符, 只包含数字、点、冒号和一个空格;
- 之后紧跟恰好一个空白字符作为分隔;
- 剩余部分原样作为提醒内容 (可以跨行, 内部空白保持不变), 不能为空。
"""

import re
from datetime import datetime

from remindbot.datamodel import ParsedCommand

__all__ = ["CommandParseError", "parse_command", "DATETIME_FORMAT"]

DATETIME_FORMAT = "%d.%m.%Y %H:%M"

_COMMAND_PATTERN = re.compile(
    r"(?P<when>\d{2}\.\d{2}\.\d{4} \d{2}:\d{2})\s(?P<body>.+)",
    re.DOTALL,
)


class CommandParseError(ValueError):
    """输入文本不符合提醒指令格式"""


def parse_command(text: str) -> ParsedCommand:
    """把一行文本解析为 (到期时间, 提醒内容)

    解析失败时抛出 CommandParseError, 不会返回部分结果
    """
    if text is None:
        raise CommandParseError("empty input")

    match = _COMMAND_PATTERN.fullmatch(text)
    if match is None:
        raise CommandParseError(f"input does not match 'DD.MM.YYYY HH:MM text': {text!r}")

    body = match.group("body")
    if not body.strip():
        raise CommandParseError("reminder text is empty")

    try:
        # 31.02.2020 之类不存在的日期在这里失败
        due_at = datetime.strptime(match.group("when"), DATETIME_FORMAT)
    except ValueError as e:
        raise CommandParseError(f"invalid date/time {match.group('when')!r}: {e}") from e

    return ParsedCommand(due_at=due_at, body=body)
