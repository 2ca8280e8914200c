from remindbot.logger import setup_logging, logger
from remindbot.config.settings import *

import asyncio
import signal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from remindbot.channels import telegram_polling
from remindbot.core.registrar import TaskRegistrar
from remindbot.core.scheduler import ReminderScheduler
from remindbot.metrics import runtime_metrics
from remindbot.storage import db_config
from remindbot.storage.task import TaskStore
from remindbot.utils import now_local_min


async def main() -> None:
    shutdown_event = asyncio.Event()

    def signal_handler(sig, frame):
        """处理 SIGINT (Ctrl+C) / SIGTERM 信号"""
        logger.info("收到中断信号, 正在依次关闭组件...")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    conn = await db_config.init_db(REMINDER_DB_PATH)
    try:
        store = TaskStore(conn)
        await store.recover_interrupted()

        registrar = TaskRegistrar(store)
        app = telegram_polling.build_application(TELEGRAM_BOT_TOKEN, registrar)
        scheduler = ReminderScheduler(
            store,
            app.bot_data["dispatcher"],
            interval_seconds=SCHEDULER_INTERVAL_SECONDS,
            clock=lambda: now_local_min(REMINDER_TIMEZONE),
        )

        await asyncio.gather(
            scheduler.run_loop(shutdown_event),
            telegram_polling.run_polling(app, shutdown_event),
        )
    finally:
        shutdown_event.set()
        logger.info("关闭 remindbot...")
        logger.info(f"运行统计: {runtime_metrics.snapshot()}")
        await db_config.close_db(conn)
        logger.info("remindbot 已关闭")


def run() -> None:
    setup_logging(
        log_level=LOG_LEVEL,
        log_file=LOG_FILE,
        console_level=CONSOLE_LOG_LEVEL,
    )
    if TELEGRAM_BOT_TOKEN == "":
        logger.critical("TELEGRAM_BOT_TOKEN 未设置, 无法启动")
        raise SystemExit(1)
    if REMINDER_TIMEZONE:
        try:
            ZoneInfo(REMINDER_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            logger.critical(f"REMINDER_TIMEZONE 非法: {REMINDER_TIMEZONE}")
            raise SystemExit(1)

    logger.info("启动 remindbot...")
    asyncio.run(main())


if __name__ == "__main__":
    run()
