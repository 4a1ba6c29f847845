"""
Impostor - Channel Allocator
============================

Creates and destroys the Discord channels a session owns.

A session gets one category with a talking and a silence channel when the
game client connects. Admin channels are created later, one at a time, by
the reconciler.
"""

from typing import TYPE_CHECKING

import discord

from impostor.core.constants import (
    ADMIN_CHANNEL_NAME,
    CATEGORY_NAME_TEMPLATE,
    CHANNEL_DELETE_REASON,
    SILENCE_CHANNEL_NAME,
    TALKING_CHANNEL_NAME,
)
from impostor.core.logger import log
from .membership import MembershipIndex
from .models import Session, SessionChannel, SessionChannelType, SessionChannels

if TYPE_CHECKING:
    from impostor.services.database import Database
    from .platform import DiscordPlatform


class ChannelAllocator:
    """Owns channel creation and deletion for sessions."""

    def __init__(self, platform: "DiscordPlatform", db: "Database", index: MembershipIndex) -> None:
        self.platform = platform
        self.db = db
        self.index = index

    async def create_session_channels(self, session: Session) -> SessionChannels:
        """Create the category, talking and silence channels of a session."""
        existing = self.db.get_session_channels(session.id)
        if existing.talking and existing.silence:
            return existing

        category_id = await self.platform.create_category(
            session.guild_id,
            CATEGORY_NAME_TEMPLATE.format(code=session.lobby_code),
        )
        self.db.add_session_channel(session.id, category_id, SessionChannelType.CATEGORY)

        talking_id = await self.platform.create_voice_channel(
            session.guild_id,
            TALKING_CHANNEL_NAME,
            parent_id=category_id,
        )
        invite = await self.platform.create_invite(talking_id)
        self.db.add_session_channel(session.id, talking_id, SessionChannelType.TALKING, invite)

        silence_id = await self.platform.create_voice_channel(
            session.guild_id,
            SILENCE_CHANNEL_NAME,
            parent_id=category_id,
            muted=True,
        )
        self.db.add_session_channel(session.id, silence_id, SessionChannelType.SILENCE)

        log.tree("Session Channels Created", [
            ("Session ID", str(session.id)),
            ("Code", session.lobby_code),
            ("Category", str(category_id)),
            ("Talking", str(talking_id)),
            ("Silence", str(silence_id)),
        ], emoji="🔊")

        return self.db.get_session_channels(session.id)

    async def create_admin_channel(self, session: Session, category: SessionChannel) -> SessionChannel:
        """Create a private silence channel for one administrator."""
        channel_id = await self.platform.create_voice_channel(
            session.guild_id,
            ADMIN_CHANNEL_NAME,
            parent_id=category.channel_id,
            private=True,
        )
        channel = self.db.add_session_channel(session.id, channel_id, SessionChannelType.ADMIN_SILENCE)

        log.tree("Admin Channel Created", [
            ("Session ID", str(session.id)),
            ("Channel ID", str(channel_id)),
        ], emoji="🛡️")

        return channel

    async def delete_session_channels(self, session: Session) -> int:
        """
        Delete every channel of a session. Returns how many were deleted.

        Channels that are already gone or refuse deletion are logged and
        skipped; the rest are still attempted.
        """
        channels = self.db.get_session_channels(session.id)
        deleted = 0

        # Voice channels before their category
        ordered = sorted(channels.channels, key=lambda c: c.type is SessionChannelType.CATEGORY)
        for channel in ordered:
            try:
                if await self.platform.delete_channel(channel.channel_id, reason=CHANNEL_DELETE_REASON):
                    deleted += 1
            except discord.HTTPException as e:
                log.error_tree("Channel Delete Failed", e, [
                    ("Session ID", str(session.id)),
                    ("Channel ID", str(channel.channel_id)),
                    ("Type", channel.type.value),
                ])
            self.index.forget_channel(channel.channel_id)

        log.tree("Session Channels Deleted", [
            ("Session ID", str(session.id)),
            ("Deleted", f"{deleted}/{len(channels)}"),
        ], emoji="🗑️")

        return deleted
