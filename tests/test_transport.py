"""Tests for the aiogram-backed transport."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramForbiddenError, TelegramNetworkError
from aiogram.methods import SendMessage

from biomed_bot.models import ChatIdentity
from biomed_bot.services.transport import BotTransport, Transport, TransportError


def make_bot(side_effect=None) -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock(side_effect=side_effect)
    return bot


class TestBotTransport:
    @pytest.mark.asyncio
    async def test_sends_html_message(self):
        bot = make_bot()
        transport = BotTransport(bot)

        await transport.send(ChatIdentity(-100500), "<b>Live</b>")

        bot.send_message.assert_awaited_once_with(-100500, "<b>Live</b>", parse_mode=ParseMode.HTML)

    @pytest.mark.asyncio
    async def test_blocked_chat_becomes_transport_error(self):
        error = TelegramForbiddenError(
            method=SendMessage(chat_id=1, text="hi"),
            message="Forbidden: bot was blocked by the user",
        )
        transport = BotTransport(make_bot(side_effect=error))

        with pytest.raises(TransportError) as exc_info:
            await transport.send(ChatIdentity(1), "hi")

        assert exc_info.value.chat == ChatIdentity(1)
        assert "TelegramForbiddenError" in str(exc_info.value)
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_network_error_becomes_transport_error(self):
        error = TelegramNetworkError(
            method=SendMessage(chat_id=1, text="hi"),
            message="Request timeout error",
        )
        transport = BotTransport(make_bot(side_effect=error))

        with pytest.raises(TransportError):
            await transport.send(ChatIdentity(1), "hi")

    def test_implements_protocol(self):
        assert isinstance(BotTransport(make_bot()), Transport)
