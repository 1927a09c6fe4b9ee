"""
Livestream announcement bot for UZH biomedicine students.

Subscribe a chat with /subscribe, get announcements when the maths
livestream starts. Setup lives in biomed_bot.app.
"""

import asyncio

from biomed_bot.app import run


if __name__ == "__main__":
    asyncio.run(run())
