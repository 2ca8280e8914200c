import os
from dotenv import load_dotenv
from remindbot.logger import logger
load_dotenv()

__all__ = [
    "TELEGRAM_BOT_TOKEN", "ALLOWED_TELEGRAM_USER_IDS", "ADMIN_TELEGRAM_USER_ID",
    "REMINDER_DB_PATH", "REMINDER_TIMEZONE",
    "SCHEDULER_INTERVAL_SECONDS", "SEND_TIMEOUT_SECONDS",
    "LOG_FILE", "LOG_LEVEL", "CONSOLE_LOG_LEVEL",
]


def _parse_int_list(name: str) -> list[int]:
    raw = os.getenv(name, "")
    result: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            result.append(int(part))
        except ValueError:
            logger.warning(f"{name} 中包含非法的 ID: {part!r}, 已忽略")
    return result


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"{name} 非法: {raw!r}, 已回退到 {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} 必须为正数: {raw!r}, 已回退到 {default}")
        return default
    return value


# Telegram Bot
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
ALLOWED_TELEGRAM_USER_IDS = _parse_int_list("ALLOWED_TELEGRAM_USER_IDS")  # 为空时允许所有用户

try:
    ADMIN_TELEGRAM_USER_ID = int(os.getenv("ADMIN_TELEGRAM_USER_ID", "0"))
except ValueError:
    ADMIN_TELEGRAM_USER_ID = 0
    logger.warning("ADMIN_TELEGRAM_USER_ID 非法, 已禁用管理员错误通知")


# 存储与时间
REMINDER_DB_PATH = os.getenv("REMINDER_DB_PATH", "data/remindbot.db")
REMINDER_TIMEZONE = os.getenv("REMINDER_TIMEZONE", "").strip()  # 为空时使用本机时区


# 调度
SCHEDULER_INTERVAL_SECONDS = _parse_float("SCHEDULER_INTERVAL_SECONDS", 60.0)
SEND_TIMEOUT_SECONDS = _parse_float("SEND_TIMEOUT_SECONDS", 10.0)


# 日志
LOG_FILE = os.getenv("LOG_FILE", "logs/remindbot.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "TRACE")
CONSOLE_LOG_LEVEL = os.getenv("CONSOLE_LOG_LEVEL", "INFO")
