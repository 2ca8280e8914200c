"""remindbot: 一次性定时提醒的 Telegram 机器人"""

__version__ = "0.1.0"
