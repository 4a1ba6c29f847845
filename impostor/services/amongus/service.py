"""
Impostor - Among Us Service
===========================

Entry point for everything session related: text commands, voice-state
events, startup cleanup and the per-session client runners.
"""

import asyncio
import sqlite3
from typing import TYPE_CHECKING, Dict, Optional

import discord

from impostor.core.config import config
from impostor.core.logger import log
from impostor.services.database.core import DatabaseUnavailableError
from impostor.utils.async_utils import create_safe_task
from .channels import ChannelAllocator
from .membership import MembershipIndex
from .models import LobbyRegion, Session, SessionChannelType, SessionEnd, SessionState
from .parser import CommandError, parse_command
from .platform import DiscordPlatform
from .presenter import build_error_embed, build_loading_embed
from .reconciler import MembershipReconciler
from .runner import SessionRunner
from .state_machine import SessionStateMachine

if TYPE_CHECKING:
    from discord.ext import commands
    from impostor.services.database import Database


SESSION_STORE_FAILED_MESSAGE = "Could not save the session. Try again in a bit?"


class AmongUsService:
    """Service for Among Us sessions and their voice channels."""

    def __init__(
        self,
        bot: "commands.Bot",
        db: "Database",
        platform: Optional[DiscordPlatform] = None,
        runner: Optional[SessionRunner] = None,
    ) -> None:
        """Wire up the session components. The membership index starts empty."""
        self.bot = bot
        self.db = db
        self.platform = platform or DiscordPlatform(bot)
        self.index = MembershipIndex()
        self.allocator = ChannelAllocator(self.platform, db, self.index)
        self.reconciler = MembershipReconciler(self.platform, db, self.index, self.allocator)
        self.state_machine = SessionStateMachine(self.platform, db, self.allocator, self.reconciler)
        self.runner = runner or SessionRunner(self.allocator, self.state_machine)
        self.prefix = config.COMMAND_PREFIX
        self._runners: Dict[int, asyncio.Task] = {}  # session_id -> client runner task

    async def setup(self) -> None:
        """Set up the service: tear down every session left from a previous run."""
        self.db.require_healthy()
        cleaned = await self.cleanup_stale_sessions()

        log.tree("Among Us Service", [
            ("Status", "Initialized"),
            ("Prefix", self.prefix.strip()),
            ("Client", " ".join(self.runner.command)),
            ("Stale Sessions Cleaned", str(cleaned)),
        ], emoji="🎲")

    async def stop(self) -> None:
        """Cancel running clients. Their sessions are cleaned up on next start."""
        cancelled = 0
        for session_id, task in list(self._runners.items()):
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                cancelled += 1
        self._runners.clear()

        log.tree("Among Us Service Stopped", [
            ("Cancelled Runners", str(cancelled)),
        ], emoji="🔇")

    # =========================================================================
    # Startup Recovery
    # =========================================================================

    async def cleanup_stale_sessions(self) -> int:
        """
        End every persisted session as stale.

        Nothing from a previous process can be trusted: the game clients are
        gone and the membership index is empty, so no session is resumed.
        """
        sessions = self.db.get_all_sessions()
        cleaned = 0

        for session in sessions:
            try:
                await self.state_machine.end(session, SessionEnd.STALE)
                cleaned += 1
            except Exception as e:
                log.error_tree("Stale Session Cleanup Failed", e, [
                    ("Session ID", str(session.id)),
                    ("Guild ID", str(session.guild_id)),
                ])

        if sessions:
            log.tree("Stale Session Cleanup", [
                ("Found", str(len(sessions))),
                ("Cleaned", str(cleaned)),
            ], emoji="🧹")

        return cleaned

    # =========================================================================
    # Voice Events
    # =========================================================================

    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState
    ) -> None:
        """Feed channel changes into the index (mute/deafen/stream changes are ignored)."""
        before_id = before.channel.id if before.channel else None
        after_id = after.channel.id if after.channel else None

        if before_id == after_id:
            return

        if before_id is not None and after_id is not None:
            await self.on_voice_move(member.id, before_id, after_id)
        elif before_id is not None:
            self.on_voice_leave(member.id, before_id)
        else:
            await self.on_voice_join(member.id, after_id)

    async def on_voice_join(self, member_id: int, channel_id: int) -> None:
        """Track a join. Anyone entering a talking channel mid-match is sent to silence."""
        self.index.on_join(member_id, channel_id)

        session = self.db.find_session_by_channel(channel_id, SessionChannelType.TALKING)
        if session is None or session.state is not SessionState.PLAYING:
            return

        log.tree("Late Joiner Redirected", [
            ("Session ID", str(session.id)),
            ("Member ID", str(member_id)),
        ], emoji="🤫")
        await self.reconciler.redirect_late_joiner(session, member_id)

    def on_voice_leave(self, member_id: int, channel_id: int) -> None:
        self.index.on_leave(member_id, channel_id)

    async def on_voice_move(self, member_id: int, from_channel_id: int, to_channel_id: int) -> None:
        self.index.on_leave(member_id, from_channel_id)
        await self.on_voice_join(member_id, to_channel_id)

    # =========================================================================
    # Commands
    # =========================================================================

    async def on_message(self, message: discord.Message) -> None:
        """Handle `<prefix> <region> <code>` in guild text channels."""
        if message.author.bot or not message.guild:
            return
        if not message.content.lower().startswith(self.prefix.lower()):
            return

        await self.handle_command(
            guild_id=message.guild.id,
            channel_id=message.channel.id,
            author_id=message.author.id,
            author_name=message.author.name,
            content=message.content,
        )

    async def handle_command(
        self,
        guild_id: int,
        channel_id: int,
        author_id: int,
        author_name: str,
        content: str,
    ) -> Optional[Session]:
        """Parse a command and start a session. Errors are replied to the author."""
        try:
            region, code = parse_command(content, self.prefix)
            session = await self.create_session(guild_id, channel_id, author_name, region, code)
        except (CommandError, discord.HTTPException, sqlite3.Error, DatabaseUnavailableError) as e:
            log.tree("Command Rejected", [
                ("User", author_name),
                ("ID", str(author_id)),
                ("Reason", str(e)[:100]),
            ], emoji="🚫")
            try:
                await self.platform.send_message(
                    channel_id,
                    f"<@!{author_id}>, sorry but something went wrong: {e}",
                )
            except discord.HTTPException as send_error:
                log.error_tree("Error Reply Failed", send_error, [
                    ("Channel ID", str(channel_id)),
                ])
            return None

        self.start_session(session)
        return session

    async def create_session(
        self,
        guild_id: int,
        channel_id: int,
        user: str,
        region: LobbyRegion,
        code: str,
    ) -> Session:
        """
        Post the loading message and persist a LOBBY session. No channels yet.

        If the session cannot be stored, the loading message is turned into
        an error before the exception propagates.
        """
        message_id = await self.platform.send_embed(channel_id, build_loading_embed(region, code))
        try:
            session = self.db.create_session(guild_id, channel_id, message_id, user, region, code)
        except (sqlite3.Error, DatabaseUnavailableError):
            try:
                await self.platform.edit_embed(channel_id, message_id, build_error_embed(SESSION_STORE_FAILED_MESSAGE))
            except discord.HTTPException as edit_error:
                log.error_tree("Loading Message Update Failed", edit_error, [
                    ("Channel ID", str(channel_id)),
                    ("Message ID", str(message_id)),
                ])
            raise

        log.tree("Session Created", [
            ("Session ID", str(session.id)),
            ("Host", user),
            ("Region", region.value),
            ("Code", code),
        ], emoji="🎲")

        return session

    def start_session(self, session: Session) -> asyncio.Task:
        """Run the game client for a session in the background."""
        task = create_safe_task(self.runner.run(session), name=f"Session {session.id} Runner")
        self._runners[session.id] = task
        task.add_done_callback(lambda _: self._runners.pop(session.id, None))
        return task
