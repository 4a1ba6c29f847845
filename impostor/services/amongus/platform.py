"""
Impostor - Discord Platform
===========================

The slice of the Discord API the session core talks to. Everything is
addressed by snowflake ID so the session logic never holds live
discord.py objects across awaits.
"""

from typing import TYPE_CHECKING, Optional

import discord

from impostor.core.logger import log

if TYPE_CHECKING:
    from discord.ext import commands


class DiscordPlatform:
    """discord.py-backed implementation of the platform calls."""

    def __init__(self, bot: "commands.Bot") -> None:
        self.bot = bot

    # =========================================================================
    # Lookups
    # =========================================================================

    async def _get_guild(self, guild_id: int) -> discord.Guild:
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            guild = await self.bot.fetch_guild(guild_id)
        return guild

    async def _get_channel(self, channel_id: int) -> discord.abc.GuildChannel:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel

    # =========================================================================
    # Messages
    # =========================================================================

    async def send_embed(self, channel_id: int, embed: discord.Embed) -> int:
        """Post an embed and return the new message ID."""
        channel = await self._get_channel(channel_id)
        message = await channel.send(embed=embed)
        return message.id

    async def edit_embed(self, channel_id: int, message_id: int, embed: discord.Embed) -> None:
        channel = await self._get_channel(channel_id)
        await channel.get_partial_message(message_id).edit(embed=embed)

    async def send_message(self, channel_id: int, content: str) -> None:
        channel = await self._get_channel(channel_id)
        await channel.send(content)

    # =========================================================================
    # Channels
    # =========================================================================

    async def create_category(self, guild_id: int, name: str) -> int:
        guild = await self._get_guild(guild_id)
        category = await guild.create_category(name, reason="Among Us: Session started.")
        return category.id

    async def create_voice_channel(
        self,
        guild_id: int,
        name: str,
        parent_id: Optional[int] = None,
        muted: bool = False,
        private: bool = False,
    ) -> int:
        """
        Create a voice channel, optionally under a category.

        muted denies speak for @everyone. private additionally hides the
        channel from @everyone, leaving it to whoever the bot moves in.
        """
        guild = await self._get_guild(guild_id)

        overwrites = {}
        if muted or private:
            overwrites[guild.default_role] = discord.PermissionOverwrite(
                speak=False,
                view_channel=False if private else None,
            )

        category = None
        if parent_id:
            category = guild.get_channel(parent_id) or await self.bot.fetch_channel(parent_id)

        channel = await guild.create_voice_channel(
            name,
            category=category,
            overwrites=overwrites,
            reason="Among Us: Session channel.",
        )
        return channel.id

    async def create_invite(self, channel_id: int) -> str:
        """Create a permanent invite to a channel and return its code."""
        channel = await self._get_channel(channel_id)
        invite = await channel.create_invite(max_age=0, unique=False, reason="Among Us: Session invite.")
        return invite.code

    async def delete_channel(self, channel_id: int, reason: Optional[str] = None) -> bool:
        """Delete a channel. Returns False if it was already gone."""
        try:
            channel = await self._get_channel(channel_id)
            await channel.delete(reason=reason)
        except discord.NotFound:
            log.tree("Channel Already Gone", [
                ("Channel ID", str(channel_id)),
            ], emoji="👻")
            return False
        return True

    # =========================================================================
    # Members
    # =========================================================================

    async def move_member(self, guild_id: int, member_id: int, channel_id: int) -> None:
        guild = await self._get_guild(guild_id)
        member = guild.get_member(member_id)
        if member is None:
            member = await guild.fetch_member(member_id)
        await member.move_to(discord.Object(id=channel_id), reason="Among Us: Game phase changed.")

    def is_admin(self, guild_id: int, member_id: int) -> bool:
        """Administrators ignore channel speak overwrites, so they cannot be muted."""
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            return False
        member = guild.get_member(member_id)
        return bool(member and member.guild_permissions.administrator)
