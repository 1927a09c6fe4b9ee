"""
Bot bootstrap.

Thin layer: builds Bot/Dispatcher, wires dependencies (subscriber store,
transport, announcement scheduler), registers handlers; run() is the entry
point.
"""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from config import (
    ANNOUNCEMENT_TEXT,
    ANNOUNCEMENT_TIME,
    ANNOUNCEMENT_TIMEZONE,
    ANNOUNCEMENT_WEEKDAYS,
    BOT_TOKEN,
    LOG_LEVEL,
)
from biomed_bot.handlers.links import register_links_handlers
from biomed_bot.handlers.subscription import register_subscription_handlers
from biomed_bot.models import OccurrenceRule
from biomed_bot.scheduler import SchedulerProtocol, create_scheduler, start_scheduler
from biomed_bot.services.transport import BotTransport
from storage.bootstrap import get_subscriber_store


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

bot = Bot(
    token=BOT_TOKEN,
    default=DefaultBotProperties(parse_mode=ParseMode.HTML),
)
dp = Dispatcher()
subscriber_store = get_subscriber_store()
announcement_rule = OccurrenceRule.parse(
    weekdays=ANNOUNCEMENT_WEEKDAYS,
    at=ANNOUNCEMENT_TIME,
    timezone=ANNOUNCEMENT_TIMEZONE,
)

# Handler registration
register_subscription_handlers(dp, subscriber_store)
register_links_handlers(dp, bot)


async def run() -> None:
    """Bot entry point: starts the announcement loop, then polls Telegram."""
    logger.info("Starting bot...")

    scheduler: SchedulerProtocol = start_scheduler(
        create_scheduler(
            subscriber_store,
            BotTransport(bot),
            announcement_rule,
            ANNOUNCEMENT_TEXT,
        )
    )
    try:
        await dp.start_polling(bot)
    finally:
        await scheduler.stop()
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(run())
