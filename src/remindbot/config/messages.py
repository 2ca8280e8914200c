"""发送给用户的固定文本"""

GREETING = (
    "Hello, I am a reminder bot.\n"
    "Send me the date, time and text of the reminder like this:\n"
    "\"31.12.1999 23:45 Time to sit down at the table\""
)

TASK_SAVED = "Task saved successfully"

TASK_NOT_UNDERSTOOD = "Could not understand the input, check the format: DD.MM.YYYY HH:MM text"

TASK_SAVE_FAILED = "Could not save the task right now, please try again later"

ACCESS_DENIED = "You are not allowed to use this bot. Contact the administrator if you need access."

__all__ = ["GREETING", "TASK_SAVED", "TASK_NOT_UNDERSTOOD", "TASK_SAVE_FAILED", "ACCESS_DENIED"]
