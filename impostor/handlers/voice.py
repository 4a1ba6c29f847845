"""
Impostor - Voice Handler
========================

Handles voice state updates for Among Us sessions.
"""

import discord
from discord.ext import commands

from impostor.core.logger import log


class VoiceHandler(commands.Cog):
    """Handles voice state updates."""

    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState
    ):
        """Called when a user's voice state changes."""
        # Skip bots
        if member.bot:
            return

        # Forward to Among Us service
        if not self.bot.amongus:
            return

        try:
            await self.bot.amongus.on_voice_state_update(member, before, after)
        except Exception as e:
            log.error_tree("Voice State Update Failed", e, [
                ("Member", str(member)),
                ("ID", str(member.id)),
            ])


async def setup(bot):
    await bot.add_cog(VoiceHandler(bot))
