"""
Impostor - Message Handler
==========================

Forwards text commands to the Among Us service.
"""

import discord
from discord.ext import commands

from impostor.core.logger import log


class MessageHandler(commands.Cog):
    """Handles message events."""

    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Called for every message the bot can see."""
        if message.author.bot or not message.guild:
            return

        if not self.bot.amongus:
            return

        try:
            await self.bot.amongus.on_message(message)
        except Exception as e:
            log.error_tree("Message Handling Failed", e, [
                ("User", str(message.author)),
                ("Channel ID", str(message.channel.id)),
            ])


async def setup(bot):
    await bot.add_cog(MessageHandler(bot))
