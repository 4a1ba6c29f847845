"""
Impostor - Entry Point
======================

Main entry point for the bot.
"""

import asyncio
import os
import sys

# Add the repository root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

load_dotenv()

from impostor.bot import ImpostorBot
from impostor.core.config import config
from impostor.core.logger import log


async def main():
    """Main entry point."""
    if not config.TOKEN:
        log.error("IMPOSTOR_BOT_TOKEN not set in environment")
        sys.exit(1)

    log.info("Starting impostor...")
    bot = ImpostorBot()

    try:
        await bot.start(config.TOKEN)
    except KeyboardInterrupt:
        log.info("Received keyboard interrupt")
    finally:
        await bot.close()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
