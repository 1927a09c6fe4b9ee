"""Bot configuration."""

import os
from dotenv import load_dotenv

load_dotenv()

BOT_TOKEN = os.getenv("BOT_TOKEN")
if not BOT_TOKEN:
    raise ValueError("BOT_TOKEN is not set in .env")

# One chat id per line; a missing file means nobody is subscribed yet
SUBSCRIBERS_FILE = os.getenv("SUBSCRIBERS_FILE", "data/chats.txt")

# When the announcement goes out: weekdays (mon..sun), HH:MM, IANA zone
ANNOUNCEMENT_WEEKDAYS = os.getenv("ANNOUNCEMENT_WEEKDAYS", "tue,thu")
ANNOUNCEMENT_TIME = os.getenv("ANNOUNCEMENT_TIME", "17:00")
ANNOUNCEMENT_TIMEZONE = os.getenv("ANNOUNCEMENT_TIMEZONE", "Europe/Zurich")

ANNOUNCEMENT_TEXT = os.getenv(
    "ANNOUNCEMENT_TEXT",
    "📺 <b>The maths livestream starts now!</b>\n\nJoin in on OLAT. Use /links for all course links.",
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
