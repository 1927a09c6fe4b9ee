from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError

from biomed_bot.models import ChatIdentity


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """A message could not be delivered to one chat."""

    def __init__(self, chat: ChatIdentity, message: str) -> None:
        super().__init__(message)
        self.chat = chat


@runtime_checkable
class Transport(Protocol):
    """Outbound messaging: one call per recipient."""

    async def send(self, chat: ChatIdentity, text: str) -> None:
        """Deliver `text` to `chat`; raise TransportError on failure."""
        ...


class BotTransport:
    """
    Transport over the Telegram Bot API (aiogram).

    Telegram errors (bot blocked, chat not found, flood control, network)
    are converted into TransportError so callers only handle one type.
    """

    def __init__(self, bot: Bot, *, parse_mode: str = ParseMode.HTML) -> None:
        self._bot = bot
        self._parse_mode = parse_mode

    async def send(self, chat: ChatIdentity, text: str) -> None:
        try:
            await self._bot.send_message(chat.id, text, parse_mode=self._parse_mode)
        except TelegramAPIError as e:
            raise TransportError(chat, f"{type(e).__name__}: {e}") from e
