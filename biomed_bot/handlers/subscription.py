"""
/start, /subscribe and /unsubscribe. ARCH: only store calls and replies.
"""
from __future__ import annotations

import logging

from aiogram import Dispatcher
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from biomed_bot.models import ChatIdentity
from biomed_bot.repositories.subscribers import StorageError, SubscriberRepository

logger = logging.getLogger(__name__)

ALREADY_SUBSCRIBED = (
    "You've already subscribed this chat to livestream announcements. "
    "You can unsubscribe again by using /unsubscribe"
)
SUBSCRIBED = (
    "Successfully subscribed chat to livestream announcements. "
    "You can unsubscribe again by using /unsubscribe"
)
UNSUBSCRIBED = (
    "You've successfully unsubscribed this chat from livestream announcements. "
    "You can subscribe again by using /subscribe"
)
NOT_SUBSCRIBED = (
    "You are not subscribed to livestream announcements, so you can't unsubscribe from them. "
    "If you meant to subscribe, you can do so by using /subscribe"
)
STORAGE_FAILED = "⚠️ Something went wrong on our side. Please try again in a moment."


async def handle_subscribe(message: Message, store: SubscriberRepository) -> None:
    chat = ChatIdentity(message.chat.id)
    try:
        added = await store.append(chat)
    except StorageError:
        logger.exception("Subscribe failed for chat %s", chat)
        await message.answer(STORAGE_FAILED)
        return
    await message.answer(SUBSCRIBED if added else ALREADY_SUBSCRIBED)


async def handle_unsubscribe(message: Message, store: SubscriberRepository) -> None:
    chat = ChatIdentity(message.chat.id)
    try:
        removed = await store.remove(chat)
    except StorageError:
        logger.exception("Unsubscribe failed for chat %s", chat)
        await message.answer(STORAGE_FAILED)
        return
    await message.answer(UNSUBSCRIBED if removed else NOT_SUBSCRIBED)


def register_subscription_handlers(dp: Dispatcher, store: SubscriberRepository) -> None:
    """Registers /start, /subscribe (same behaviour) and /unsubscribe."""

    @dp.message(CommandStart())
    async def cmd_start(message: Message) -> None:
        await handle_subscribe(message, store)

    @dp.message(Command("subscribe"))
    async def cmd_subscribe(message: Message) -> None:
        await handle_subscribe(message, store)

    @dp.message(Command("unsubscribe"))
    async def cmd_unsubscribe(message: Message) -> None:
        await handle_unsubscribe(message, store)
