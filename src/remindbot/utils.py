"""时间工具

所有提醒时间都只精确到分钟, 数据库中以 "YYYY-MM-DD HH:MM" 字符串保存,
因此字符串的字典序与时间先后一致, 可以直接在 SQL 中比较
"""

from datetime import datetime
from zoneinfo import ZoneInfo

__all__ = ["MIN_FORMAT", "truncate_to_minute", "now_local_min", "to_min_str", "from_min_str"]

MIN_FORMAT = "%Y-%m-%d %H:%M"


def truncate_to_minute(dt: datetime) -> datetime:
    return dt.replace(second=0, microsecond=0)


def now_local_min(tz_name: str = "") -> datetime:
    """获取当前本地时间 (精确到分钟, 不带时区信息)

    tz_name 为空时使用本机时区, 否则使用给定的 IANA 时区, 例如 "Europe/Moscow"
    """
    if tz_name:
        now = datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
    else:
        now = datetime.now()
    return truncate_to_minute(now)


def to_min_str(dt: datetime) -> str:
    # strftime 的 %Y 在部分平台上不会把小于 1000 的年份补足 4 位
    return f"{dt.year:04d}-{dt:%m-%d %H:%M}"


def from_min_str(value: str) -> datetime:
    return datetime.strptime(value, MIN_FORMAT)
