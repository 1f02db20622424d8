"""User-visible status notifications for memory updates."""

import logging
from enum import Enum
from typing import Protocol

from telegram import Bot

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


class NotificationLevel(Enum):
    """Severity of a notification."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Notifier(Protocol):
    """Surface for short, transient status messages."""

    async def notify(self, level: NotificationLevel, message: str) -> None:
        """Show a message. Nothing is returned to the caller."""
        ...


def truncate_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Truncate message to fit Telegram limits."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 20] + "\n... [truncated]"


class ConsoleNotifier:
    """Prints notifications to stdout."""

    COLORS = {
        NotificationLevel.INFO: "\033[34m",  # blue
        NotificationLevel.SUCCESS: "\033[32m",  # green
        NotificationLevel.ERROR: "\033[31m",  # red
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True) -> None:
        self.color = color

    def format(self, level: NotificationLevel, message: str) -> str:
        label = f"[{level.value}]"
        if self.color:
            label = f"{self.COLORS[level]}{label}{self.RESET}"
        return f"{label} {message}"

    async def notify(self, level: NotificationLevel, message: str) -> None:
        print(self.format(level, message))


class TelegramNotifier:
    """Sends notifications to a Telegram chat."""

    ICONS = {
        NotificationLevel.INFO: "⏳",
        NotificationLevel.SUCCESS: "✅",
        NotificationLevel.ERROR: "⚠️",
    }

    def __init__(self, bot: Bot, chat_id: str | int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    @classmethod
    def from_token(cls, token: str, chat_id: str | int) -> "TelegramNotifier":
        return cls(Bot(token=token), chat_id)

    async def notify(self, level: NotificationLevel, message: str) -> None:
        text = truncate_message(f"{self.ICONS[level]} {message}")
        await self.bot.send_message(chat_id=self.chat_id, text=text)
