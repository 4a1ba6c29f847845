"""
Impostor - Ready Handler
========================

Handles bot startup events.
"""

import discord
from discord.ext import commands

from impostor.core.config import config
from impostor.core.logger import log


class ReadyHandler(commands.Cog):
    """Handles bot ready event."""

    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_ready(self):
        """Called when the bot is ready."""
        log.tree("Bot Ready", [
            ("User", str(self.bot.user)),
            ("ID", str(self.bot.user.id)),
            ("Guilds", str(len(self.bot.guilds))),
        ], emoji="🚀")

        # Initialize services (also tears down stale sessions)
        try:
            await self.bot._init_services()
        except Exception as e:
            log.error_tree("Service Init Failed", e)
            return

        # Set presence
        await self.bot.change_presence(
            activity=discord.Game(name=f"{config.COMMAND_PREFIX.strip()} <region> <code>")
        )


async def setup(bot):
    await bot.add_cog(ReadyHandler(bot))
