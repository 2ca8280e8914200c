"""日志模块

日志级别来自环境变量 (LOG_LEVEL / CONSOLE_LOG_LEVEL), 非法的级别回退到 INFO。
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} - {message}"

_DEFAULT_LEVEL = "INFO"


def normalize_level(level: str) -> str:
    """转换为 loguru 认识的级别名, FATAL 视为 CRITICAL, 未知级别回退到 INFO"""
    name = str(level).strip().upper()
    if name == "FATAL":
        name = "CRITICAL"
    try:
        logger.level(name)
    except ValueError:
        logger.warning(f"未知的日志级别: {level!r}, 已回退到 {_DEFAULT_LEVEL}")
        return _DEFAULT_LEVEL
    return name


def setup_logging(log_level: str, log_file: str | Path, console_level: str = "INFO") -> None:
    """控制台 + 按大小轮转的日志文件, ERROR 及以上另写一份 xxx_error.log"""
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    error_log_file = log_file.with_name(f"{log_file.stem}_error{log_file.suffix}")

    # 调度循环与 Telegram 回调会并发写日志
    file_options = {"format": FILE_FORMAT, "rotation": "10 MB", "compression": "zip",
                    "encoding": "utf-8", "enqueue": True}

    logger.remove()
    logger.add(sys.stderr, level=normalize_level(console_level), format=CONSOLE_FORMAT, colorize=True)
    logger.add(log_file, level=normalize_level(log_level), retention="30 days", **file_options)
    logger.add(error_log_file, level="ERROR", retention="90 days", **file_options)


__all__ = ["setup_logging", "normalize_level", "logger"]
