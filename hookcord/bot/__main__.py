"""
Hookcord entry point
python -m hookcord.bot
"""

import asyncio
import logging

from pydantic import ValidationError

from hookcord.bot.bot import HookcordBot
from hookcord.bot.core import get_settings, setup_logging

logger = logging.getLogger("hookcord")


async def main() -> None:
    """Load settings and run the bot until it disconnects"""
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        missing = ", ".join(str(err["loc"][0]).upper() for err in e.errors())
        logger.error(f"Invalid or missing settings: {missing}")
        logger.error("Set them in the environment or a .env file")
        return

    setup_logging(settings.log_level)
    async with HookcordBot(settings) as bot:
        await bot.start(settings.discord_bot_token)


def run() -> None:
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Hookcord stopped")


if __name__ == "__main__":
    run()
