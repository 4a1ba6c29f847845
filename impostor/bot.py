"""
Impostor - Main Bot
===================

Discord bot that runs Among Us sessions with proximity-style voice channels.
"""

import discord
from discord.ext import commands
from typing import Optional

from impostor.core.config import config
from impostor.core.logger import log
from impostor.services.amongus.service import AmongUsService
from impostor.services.database import Database


class ImpostorBot(commands.Bot):
    """Main bot class for Impostor."""

    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.voice_states = True

        super().__init__(
            command_prefix=config.COMMAND_PREFIX,
            intents=intents,
            help_command=None,
            max_messages=5,
        )

        # Services
        self.db: Optional[Database] = None
        self.amongus: Optional[AmongUsService] = None

    async def setup_hook(self) -> None:
        """Called when the bot is starting up."""
        self.db = Database()

        # Load handlers
        await self.load_extension("impostor.handlers.ready")
        await self.load_extension("impostor.handlers.voice")
        await self.load_extension("impostor.handlers.message")

    async def on_message(self, message: discord.Message) -> None:
        """Text commands are parsed by the Among Us service, not discord.ext.commands."""
        return

    async def _init_services(self) -> None:
        """Initialize bot services. Runs once, on the first ready event."""
        if self.amongus:
            return

        # Only attach once setup passed, so an unhealthy database accepts no commands
        amongus = AmongUsService(self, self.db)
        await amongus.setup()
        self.amongus = amongus

    async def close(self) -> None:
        """Clean up when bot is shutting down."""
        log.info("Bot shutting down...")
        if self.amongus:
            await self.amongus.stop()
        await super().close()
