import asyncio
import datetime
from functools import wraps

import telegram
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes, MessageHandler, filters

from remindbot.channels.base import DispatchError, MessageDispatcher
from remindbot.config.messages import *
from remindbot.config.settings import ADMIN_TELEGRAM_USER_ID, ALLOWED_TELEGRAM_USER_IDS, SEND_TIMEOUT_SECONDS
from remindbot.core.registrar import TaskRegistrar
from remindbot.datamodel import Registration
from remindbot.events import bus, E
from remindbot.logger import logger
from remindbot.storage.task import StoreError

__all__ = ["TelegramDispatcher", "build_application", "run_polling", "cmd_start", "process_message"]


class TelegramDispatcher(MessageDispatcher):
    def __init__(self, bot: telegram.Bot, timeout_seconds: float = SEND_TIMEOUT_SECONDS) -> None:
        self.bot = bot
        self.timeout_seconds = timeout_seconds

    async def _deliver(self, recipient: int, text: str) -> None:
        try:
            await asyncio.wait_for(
                self.bot.send_message(chat_id=recipient, text=text),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise DispatchError(f"发送超时 ({self.timeout_seconds}s)") from e
        except telegram.error.TelegramError as e:
            raise DispatchError(f"Telegram 错误: {e}") from e


def requires_auth(func):
    @wraps(func)
    async def decorated(update: telegram.Update, *args, **kwargs):
        if update.effective_user is None or update.message is None:
            # 频道消息、编辑过的消息等没有可回复的 message
            return
        if update.effective_user.id not in ALLOWED_TELEGRAM_USER_IDS and ALLOWED_TELEGRAM_USER_IDS != []:
            logger.warning(f"用户 {update.effective_user.id} 未经允许访问 Bot")
            await update.message.reply_text(ACCESS_DENIED)
        else:
            return await func(update, *args, **kwargs)
    return decorated


@requires_auth
async def cmd_start(update: telegram.Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.info(f"收到 /start 命令来自 Telegram ID: {update.effective_user.id}")
    dispatcher: MessageDispatcher = context.bot_data["dispatcher"]
    await dispatcher.send(update.effective_chat.id, GREETING)


@requires_auth
async def process_message(update: telegram.Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.message is None or not update.message.text:
        return

    chat_id = update.effective_chat.id
    text = update.message.text
    logger.info(f"chat_id: {chat_id} 消息内容: {text}")
    bus.emit(E.IO_MESSAGE_RECEIVED, chat_id=chat_id)

    registrar: TaskRegistrar = context.bot_data["registrar"]
    dispatcher: MessageDispatcher = context.bot_data["dispatcher"]
    try:
        result = await registrar.register_task(chat_id, text)
    except StoreError as e:
        logger.error(f"保存 chat_id={chat_id} 的提醒失败: {e}", exc_info=e)
        await dispatcher.send(chat_id, TASK_SAVE_FAILED)
        return

    reply = TASK_SAVED if result is Registration.ACK else TASK_NOT_UNDERSTOOD
    if not await dispatcher.send(chat_id, reply):
        # 任务本身已处理完毕, 回复失败只记录
        logger.warning(f"向 chat_id={chat_id} 回复处理结果失败: result={result.value}")


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """处理 telegram 库中发生的错误"""
    logger.error(f"Telegram 错误: {context.error}", exc_info=context.error)
    if ADMIN_TELEGRAM_USER_ID != 0:
        user_id = update.effective_user.id if isinstance(update, telegram.Update) and update.effective_user else None
        try:
            await context.bot.send_message(
                chat_id=ADMIN_TELEGRAM_USER_ID,
                text=f"Warning! remindbot 在处理 {user_id} 的消息时发生错误: {context.error}",
            )
        except Exception as e:
            logger.error(f"向管理员发送错误消息失败: {e}", exc_info=e)


def bot_error_callback(error: telegram.error.TelegramError) -> None:
    if isinstance(error, telegram.error.NetworkError):
        logger.warning(f"Telegram Bot 网络错误: {error}")
    else:
        logger.error(f"Telegram Bot 发生预期外的错误: {error}", exc_info=error)


def build_application(token: str, registrar: TaskRegistrar) -> Application:
    """创建 Telegram 应用, 并把 registrar 与 dispatcher 放入 bot_data 供处理器使用"""
    app = ApplicationBuilder().token(token).build()
    app.bot_data["registrar"] = registrar
    app.bot_data["dispatcher"] = TelegramDispatcher(app.bot)

    # 同一组内只有第一个匹配的处理器生效, 除 /start 外的所有文本都交给 registrar
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(MessageHandler(filters.TEXT, process_message))
    app.add_error_handler(error_handler)
    return app


async def run_polling(app: Application, shutdown_event: asyncio.Event) -> None:
    try:
        await app.initialize()
        await app.updater.start_polling(
            poll_interval=0.5,
            timeout=datetime.timedelta(seconds=15),
            bootstrap_retries=-1,
            drop_pending_updates=False,  # 保留下线期间的消息
            error_callback=bot_error_callback,
        )
        await app.start()
        logger.info("Telegram Bot Polling 已启动")

        await shutdown_event.wait()
    finally:
        logger.info("关闭 Telegram Bot Polling...")
        if app.updater is not None and app.updater.running:
            await app.updater.stop()
        if app.running:
            await app.stop()
        await app.shutdown()
