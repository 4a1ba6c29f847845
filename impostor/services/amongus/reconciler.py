"""
Impostor - Membership Reconciler
================================

Moves members between a session's talking and silence channels so the
voice layout matches the game phase.

"Currently in a channel" always means "according to the MembershipIndex".
Moves are issued concurrently and independently: one member failing to
move (left mid-flight, channel deleted, missing permissions) never stops
the others. Failures are logged and handed back, not raised.

Transitions for one session must not overlap; SessionStateMachine holds a
per-session lock around every call into this module.
"""

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, NamedTuple, Tuple

from impostor.core.logger import log
from impostor.utils.async_utils import gather_with_logging
from .channels import ChannelAllocator
from .membership import MembershipIndex
from .models import Session, SessionState

if TYPE_CHECKING:
    from impostor.services.database import Database
    from .platform import DiscordPlatform


ADMIN_NOTICE = (
    "<@!{member_id}>, since you're an administrator I won't be able to mute you. "
    "Instead, you're getting your own channel."
)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation batch."""

    moved: List[int] = field(default_factory=list)
    failed: List[Tuple[int, BaseException]] = field(default_factory=list)
    admin_channels_created: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


class PendingMove(NamedTuple):
    """A member move that has already been started."""

    member_id: int
    channel_id: int
    task: "asyncio.Future[None]"


class MembershipReconciler:
    """Computes and executes member moves for a session."""

    def __init__(
        self,
        platform: "DiscordPlatform",
        db: "Database",
        index: MembershipIndex,
        allocator: ChannelAllocator,
    ) -> None:
        self.platform = platform
        self.db = db
        self.index = index
        self.allocator = allocator

    async def reconcile(self, session: Session) -> ReconcileResult:
        """Move members to where the session's current state wants them."""
        if session.state is SessionState.PLAYING:
            return await self.move_to_silence(session)
        return await self.move_to_talking(session)

    async def move_to_talking(self, session: Session) -> ReconcileResult:
        """Move everyone in any silence or admin channel into the talking channel."""
        channels = self.db.get_session_channels(session.id)
        talking = channels.talking
        if talking is None:
            return self._missing_channels(session, "talking")

        moves = [
            (member_id, talking.channel_id)
            for channel in channels.silence_channels
            for member_id in self.index.members_of(channel.channel_id)
        ]
        return await self._execute(session, moves, "To Talking")

    async def move_to_silence(self, session: Session) -> ReconcileResult:
        """
        Move everyone in the talking channel out of it.

        Regular members share the silence channel. Each administrator gets
        an admin channel of their own: an empty one is reused if the index
        shows one, otherwise a new one is created. Claiming or creating a
        channel is done one admin at a time so two admins never land in
        the same channel. Every move starts as soon as its target is known.
        """
        channels = self.db.get_session_channels(session.id)
        talking, silence, category = channels.talking, channels.silence, channels.category
        if talking is None or silence is None or category is None:
            return self._missing_channels(session, "talking/silence/category")

        members = self.index.members_of(talking.channel_id)
        admins = [m for m in members if self.platform.is_admin(session.guild_id, m)]
        regular = [m for m in members if m not in admins]

        # Regular moves start now and run while admin channels are sorted out
        moves: List[PendingMove] = [
            self._start_move(session, member_id, silence.channel_id) for member_id in regular
        ]

        free_admin_channels = [c for c in channels.admin if self.index.is_empty(c.channel_id)]
        created = 0
        failed: List[Tuple[int, BaseException]] = []

        for admin_id in admins:
            if free_admin_channels:
                moves.append(self._start_move(session, admin_id, free_admin_channels.pop(0).channel_id))
                continue

            try:
                await self.platform.send_message(session.channel_id, ADMIN_NOTICE.format(member_id=admin_id))
            except Exception as e:
                log.error_tree("Admin Notice Failed", e, [
                    ("Session ID", str(session.id)),
                    ("Member ID", str(admin_id)),
                ])

            try:
                admin_channel = await self.allocator.create_admin_channel(session, category)
            except Exception as e:
                log.error_tree("Admin Channel Create Failed", e, [
                    ("Session ID", str(session.id)),
                    ("Member ID", str(admin_id)),
                ])
                failed.append((admin_id, e))
                continue

            created += 1
            moves.append(self._start_move(session, admin_id, admin_channel.channel_id))

        result = await self._collect(session, moves, "To Silence")
        result.failed.extend(failed)
        result.admin_channels_created = created
        return result

    async def redirect_late_joiner(self, session: Session, member_id: int) -> bool:
        """
        Pull a member who joined the talking channel mid-match into silence.

        Returns True if a move was issued and succeeded.
        """
        if session.state is not SessionState.PLAYING:
            return False

        silence = self.db.get_session_channels(session.id).silence
        if silence is None:
            return False

        result = await self._execute(session, [(member_id, silence.channel_id)], "Late Joiner")
        return result.ok

    # =========================================================================
    # Internals
    # =========================================================================

    def _start_move(self, session: Session, member_id: int, channel_id: int) -> PendingMove:
        task = asyncio.ensure_future(self.platform.move_member(session.guild_id, member_id, channel_id))
        return PendingMove(member_id, channel_id, task)

    async def _execute(self, session: Session, moves: List[Tuple[int, int]], label: str) -> ReconcileResult:
        pending = [self._start_move(session, member_id, channel_id) for member_id, channel_id in moves]
        return await self._collect(session, pending, label)

    async def _collect(self, session: Session, moves: List[PendingMove], label: str) -> ReconcileResult:
        result = ReconcileResult()
        if not moves:
            return result

        outcomes = await gather_with_logging(
            *[(f"Move {m.member_id} -> {m.channel_id}", m.task) for m in moves],
            context=f"Session {session.id} {label}",
        )

        for move, outcome in zip(moves, outcomes):
            member_id = move.member_id
            if isinstance(outcome, BaseException):
                result.failed.append((member_id, outcome))
            else:
                result.moved.append(member_id)

        log.tree(f"Reconciled {label}", [
            ("Session ID", str(session.id)),
            ("State", session.state.value),
            ("Moved", str(len(result.moved))),
            ("Failed", str(len(result.failed))),
        ], emoji="🔀" if result.ok else "⚠️")

        return result

    def _missing_channels(self, session: Session, which: str) -> ReconcileResult:
        log.tree("Reconcile Skipped", [
            ("Session ID", str(session.id)),
            ("Reason", f"No {which} channel yet"),
        ], emoji="⚠️")
        return ReconcileResult()
