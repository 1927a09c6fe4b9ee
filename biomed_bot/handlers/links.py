"""
/links: inline menu with useful course links.

Pressing a button posts the link list for that module into the chat the menu
was sent to.
"""
from __future__ import annotations

import logging

from aiogram import Bot, Dispatcher, F
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message
from aiogram.utils.markdown import hlink

logger = logging.getLogger(__name__)

UZH_WEBSITES = "uzh_websites"
OLAT = "olat"
MAT_183 = "mat_183"
PHY_127 = "phy_127"
DISCORD = "discord"

MENU_PROMPT = "Select the module you wish to see links for"


def _link_list(title: str, links: list[tuple[str, str]]) -> str:
    lines = [title]
    lines.extend(f"- {hlink(name, url)}" for name, url in links)
    return "\n".join(lines)


LINK_MESSAGES: dict[str, str] = {
    UZH_WEBSITES: _link_list(
        "The following UZH websites are relevant:",
        [
            ("Homepage", "https://www.uzh.ch/de.html"),
            ("Webmail", "https://webmail.uzh.ch/"),
            ("Launchpad", "https://studentservices.uzh.ch/uzh/launchpad/#Shell-home"),
            ("Module Booking", "https://studentservices.uzh.ch/mb"),
            (
                "Swisscovery",
                "https://swisscovery.slsp.ch/discovery/search?vid=41SLSP_UZB:VU1_UNION&lang=en",
            ),
        ],
    ),
    OLAT: hlink("OLAT", "https://lms.uzh.ch/auth/MyCoursesSite/0/Favorits/0"),
    MAT_183: _link_list(
        "The following links are important for MAT 183:",
        [
            ("OLAT", "https://lms.uzh.ch/auth/RepositoryEntry/16974184862/CourseNode/103233511448483"),
            ("Website", "https://www.math.uzh.ch/mat183.1"),
            ("Exercises", "https://w3.math.uzh.ch/my/index.php?id=lecture"),
            ("Slack Forum", "https://app.slack.com/client/T01LQ47LN3H/D01NUBXNCDR"),
        ],
    ),
    PHY_127: _link_list(
        "The following links are important for PHY 127:",
        [
            ("OLAT", "https://lms.uzh.ch/auth/RepositoryEntry/16955310089/CourseNode/103233523024807"),
            ("Website", "https://www.physik.uzh.ch/de/lehre/PHY127/FS2021.html"),
        ],
    ),
    DISCORD: _link_list(
        "The following Discord servers are used by students:",
        [
            ("Biomed Erstis", "https://discord.gg/kNhWwUGt8a"),
            ("BIUZ Biomedizin Server", "https://discord.gg/Dt454GHdDE"),
            ("UZH Students", "https://discord.gg/XJU44tdZr3"),
        ],
    ),
}


def get_links_keyboard() -> InlineKeyboardMarkup:
    """Three rows: websites/OLAT, the two modules, Discord."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="UZH Websites", callback_data=UZH_WEBSITES),
                InlineKeyboardButton(text="OLAT", callback_data=OLAT),
            ],
            [
                InlineKeyboardButton(text="MAT 183", callback_data=MAT_183),
                InlineKeyboardButton(text="PHY 127", callback_data=PHY_127),
            ],
            [InlineKeyboardButton(text="Discord", callback_data=DISCORD)],
        ]
    )


async def handle_links(message: Message) -> None:
    await message.answer(MENU_PROMPT, reply_markup=get_links_keyboard())


async def handle_link_callback(callback: CallbackQuery, bot: Bot) -> None:
    text = LINK_MESSAGES.get(callback.data or "")
    if text is None:
        logger.warning("Unknown links callback: %r", callback.data)
        await callback.answer("Unknown menu entry", show_alert=True)
        return

    # Inline-mode callbacks have no message to reply under.
    if callback.message is None:
        await callback.answer()
        return

    await callback.answer()
    try:
        await bot.send_message(callback.message.chat.id, text, parse_mode=ParseMode.HTML)
    except TelegramAPIError as e:
        logger.error("Failed to send links to %s: %s", callback.message.chat.id, e)


def register_links_handlers(dp: Dispatcher, bot: Bot) -> None:
    """Registers /links and the callbacks of its keyboard."""

    @dp.message(Command("links"))
    async def cmd_links(message: Message) -> None:
        await handle_links(message)

    @dp.callback_query(F.data)
    async def links_callback(callback: CallbackQuery) -> None:
        await handle_link_callback(callback, bot)
