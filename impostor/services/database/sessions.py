"""
Impostor - Database Sessions Mixin
==================================

Session and session-channel database operations.
"""

import sqlite3
import time
from typing import List, Optional

from impostor.core.logger import log
from impostor.services.amongus.models import (
    LobbyRegion,
    Session,
    SessionChannel,
    SessionChannelType,
    SessionChannels,
    SessionState,
)


def _row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["id"],
        guild_id=row["guild_id"],
        channel_id=row["channel_id"],
        message_id=row["message_id"],
        user=row["user"],
        state=SessionState(row["state"]),
        region=LobbyRegion(row["region"]),
        lobby_code=row["lobby_code"],
        created_at=row["created_at"] or 0,
    )


def _row_to_channel(row: sqlite3.Row) -> SessionChannel:
    return SessionChannel(
        channel_id=row["channel_id"],
        session_id=row["session_id"],
        type=SessionChannelType(row["type"]),
        invite=row["invite"],
    )


class SessionsMixin:
    """
    Mixin for session database operations.

    DESIGN:
        A session owns its channels. Channel rows are only ever written
        through add_session_channel and are removed together with their
        session in delete_session. The (guild_id, message_id) pair is
        UNIQUE so a status message can only ever track one session.
    """

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(
        self,
        guild_id: int,
        channel_id: int,
        message_id: int,
        user: str,
        region: LobbyRegion,
        lobby_code: str,
        created_at: int = None,
    ) -> Session:
        """Create a new session in the LOBBY state.

        Raises:
            sqlite3.IntegrityError: If the status message already tracks a session.
        """
        if created_at is None:
            created_at = int(time.time())
        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute("""
                INSERT INTO sessions
                    (guild_id, channel_id, message_id, user, state, region, lobby_code, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                guild_id, channel_id, message_id, user,
                SessionState.LOBBY.value, region.value, lobby_code, created_at,
            ))
            session_id = cur.lastrowid

        log.tree("DB: Session Created", [
            ("Session ID", str(session_id)),
            ("Guild ID", str(guild_id)),
            ("Region", region.value),
            ("Code", lobby_code),
        ], emoji="💾")

        return Session(
            id=session_id,
            guild_id=guild_id,
            channel_id=channel_id,
            message_id=message_id,
            user=user,
            state=SessionState.LOBBY,
            region=region,
            lobby_code=lobby_code,
            created_at=created_at,
        )

    def get_session(self, session_id: int) -> Optional[Session]:
        """Get a session by ID."""
        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
            row = cur.fetchone()
            return _row_to_session(row) if row else None

    def get_all_sessions(self) -> List[Session]:
        """Get every persisted session."""
        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM sessions ORDER BY id")
            return [_row_to_session(row) for row in cur.fetchall()]

    def find_session_by_channel(
        self,
        channel_id: int,
        channel_type: Optional[SessionChannelType] = None,
    ) -> Optional[Session]:
        """Find the session owning a channel, optionally only for one channel role."""
        query = """
            SELECT s.* FROM sessions s
            JOIN session_channels c ON c.session_id = s.id
            WHERE c.channel_id = ?
        """
        params = [channel_id]
        if channel_type is not None:
            query += " AND c.type = ?"
            params.append(channel_type.value)

        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute(query, params)
            row = cur.fetchone()
            return _row_to_session(row) if row else None

    def update_session_state(self, session_id: int, state: SessionState) -> None:
        """Persist a new session state."""
        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute("UPDATE sessions SET state = ? WHERE id = ?", (state.value, session_id))
            if cur.rowcount == 0:
                log.tree("DB: State Update Skipped", [
                    ("Session ID", str(session_id)),
                    ("Reason", "Session not found"),
                ], emoji="⚠️")

    def delete_session(self, session_id: int) -> None:
        """Delete a session and every channel row it owns."""
        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM session_channels WHERE session_id = ?", (session_id,))
            channels_removed = cur.rowcount
            cur.execute("DELETE FROM sessions WHERE id = ?", (session_id,))

        log.tree("DB: Session Deleted", [
            ("Session ID", str(session_id)),
            ("Channels Removed", str(channels_removed)),
        ], emoji="🗑️")

    # =========================================================================
    # Session Channels
    # =========================================================================

    def add_session_channel(
        self,
        session_id: int,
        channel_id: int,
        channel_type: SessionChannelType,
        invite: Optional[str] = None,
    ) -> SessionChannel:
        """Attach a channel to a session."""
        channel = SessionChannel(channel_id, session_id, channel_type, invite)
        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute("""
                INSERT INTO session_channels (channel_id, session_id, type, invite)
                VALUES (?, ?, ?, ?)
            """, (channel_id, session_id, channel_type.value, invite))
        return channel

    def get_session_channels(self, session_id: int) -> SessionChannels:
        """Load the channels owned by a session."""
        with self._get_conn() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM session_channels WHERE session_id = ? ORDER BY rowid",
                (session_id,),
            )
            return SessionChannels([_row_to_channel(row) for row in cur.fetchall()])
