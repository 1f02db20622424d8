"""Tests for notifiers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mindmem.notify import (
    MAX_MESSAGE_LENGTH,
    ConsoleNotifier,
    NotificationLevel,
    TelegramNotifier,
    truncate_message,
)


class TestTruncateMessage:
    def test_short_message_unchanged(self):
        assert truncate_message("Memory updated") == "Memory updated"

    def test_long_message_truncated(self):
        result = truncate_message("x" * 5000)
        assert len(result) <= MAX_MESSAGE_LENGTH
        assert result.endswith("[truncated]")

    def test_exact_length_unchanged(self):
        text = "x" * MAX_MESSAGE_LENGTH
        assert truncate_message(text) == text


class TestConsoleNotifier:
    def test_plain_format(self):
        notifier = ConsoleNotifier(color=False)
        assert notifier.format(NotificationLevel.ERROR, "boom") == "[error] boom"

    def test_colored_format(self):
        text = ConsoleNotifier().format(NotificationLevel.SUCCESS, "done")
        assert text.startswith("\033[32m[success]")
        assert text.endswith("done")

    @pytest.mark.asyncio
    async def test_notify_prints(self, capsys):
        await ConsoleNotifier(color=False).notify(NotificationLevel.INFO, "Working...")
        assert capsys.readouterr().out == "[info] Working...\n"


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_sends_with_icon(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()

        await TelegramNotifier(bot, 42).notify(NotificationLevel.SUCCESS, "Memory updated")

        bot.send_message.assert_awaited_once_with(chat_id=42, text="✅ Memory updated")

    @pytest.mark.asyncio
    async def test_long_message_truncated(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()

        await TelegramNotifier(bot, "42").notify(NotificationLevel.ERROR, "x" * 5000)

        text = bot.send_message.call_args.kwargs["text"]
        assert len(text) <= MAX_MESSAGE_LENGTH

    def test_from_token(self):
        notifier = TelegramNotifier.from_token("123:abc", "42")
        assert notifier.chat_id == "42"
        assert notifier.bot.token == "123:abc"
