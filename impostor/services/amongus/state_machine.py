"""
Impostor - Session State Machine
================================

Owns session phase changes:

    LOBBY -> PLAYING <-> DISCUSSING -> LOBBY ...
    any state -> ended (lobby closed, or stale)

Every transition runs, in order: persist the new state, reconcile voice
channels, re-render the status message. Ending a session deletes its
channels, rewrites the status message to a terminal variant and removes
the record.

Calls for the same session are serialized with a per-session lock, so a
transition never starts while a previous reconciliation for that session
is still moving people around.
"""

import asyncio
from typing import TYPE_CHECKING, Dict

import discord

from impostor.core.logger import log
from .channels import ChannelAllocator
from .models import Session, SessionEnd, SessionState
from .presenter import build_ended_embed, build_error_embed, build_status_embed
from .reconciler import MembershipReconciler, ReconcileResult

if TYPE_CHECKING:
    from impostor.services.database import Database
    from .platform import DiscordPlatform


class SessionStateMachine:
    """Drives a session through its lifecycle."""

    def __init__(
        self,
        platform: "DiscordPlatform",
        db: "Database",
        allocator: ChannelAllocator,
        reconciler: MembershipReconciler,
    ) -> None:
        self.platform = platform
        self.db = db
        self.allocator = allocator
        self.reconciler = reconciler
        self._locks: Dict[int, asyncio.Lock] = {}  # session_id -> transition lock

    def _get_lock(self, session_id: int) -> asyncio.Lock:
        """Get or create the transition lock for a session."""
        if session_id not in self._locks:
            self._locks[session_id] = asyncio.Lock()
        return self._locks[session_id]

    async def transition(self, session: Session, state: SessionState) -> ReconcileResult:
        """Move a session to a new phase and bring channels and message in line."""
        async with self._get_lock(session.id):
            previous = session.state

            self.db.update_session_state(session.id, state)
            session.state = state

            log.tree("Session Transition", [
                ("Session ID", str(session.id)),
                ("Code", session.lobby_code),
                ("From", previous.value),
                ("To", state.value),
            ], emoji="🎲")

            try:
                result = await self.reconciler.reconcile(session)
            except Exception as e:
                log.error_tree("Reconcile Failed", e, [
                    ("Session ID", str(session.id)),
                    ("State", state.value),
                ])
                result = ReconcileResult()

            await self.refresh(session)
            return result

    async def refresh(self, session: Session) -> None:
        """Re-render the status message for the session's current state."""
        channels = self.db.get_session_channels(session.id)
        await self._edit_status(session, build_status_embed(session, channels))

    async def fail(self, session: Session, error: str) -> None:
        """
        Show a setup/connection error on the status message.

        The session record stays; it is cleaned up on the next start.
        """
        log.tree("Session Failed", [
            ("Session ID", str(session.id)),
            ("Code", session.lobby_code),
            ("Error", error[:100]),
        ], emoji="⚠️")
        await self._edit_status(session, build_error_embed(error))

    async def end(self, session: Session, reason: SessionEnd) -> None:
        """Tear a session down: channels, then status message, then record."""
        async with self._get_lock(session.id):
            await self.allocator.delete_session_channels(session)
            await self._edit_status(session, build_ended_embed(session, reason))
            self.db.delete_session(session.id)

            log.tree("Session Ended", [
                ("Session ID", str(session.id)),
                ("Code", session.lobby_code),
                ("Host", session.user),
                ("Reason", reason.value),
            ], emoji="🏁")

        self._locks.pop(session.id, None)

    async def _edit_status(self, session: Session, embed: discord.Embed) -> bool:
        try:
            await self.platform.edit_embed(session.channel_id, session.message_id, embed)
            return True
        except discord.HTTPException as e:
            log.error_tree("Status Message Update Failed", e, [
                ("Session ID", str(session.id)),
                ("Channel ID", str(session.channel_id)),
                ("Message ID", str(session.message_id)),
            ])
            return False
