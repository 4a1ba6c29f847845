"""
Impostor - Session Models
=========================

Sessions, their channels, and the enums describing them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class SessionState(str, Enum):
    """Phase of the remote game a session is tracking."""

    LOBBY = "lobby"
    PLAYING = "playing"
    DISCUSSING = "discussing"


class SessionEnd(str, Enum):
    """Why a session ended. Picks the terminal status message."""

    LOBBY_CLOSED = "lobby_closed"
    STALE = "stale"


class LobbyRegion(str, Enum):
    """Among Us server region. Values are display names."""

    ASIA = "Asia"
    EUROPE = "Europe"
    NORTH_AMERICA = "North America"


class SessionChannelType(str, Enum):
    """Role a Discord channel plays within a session."""

    CATEGORY = "category"
    TALKING = "talking"
    SILENCE = "silence"
    ADMIN_SILENCE = "admin_silence"


SILENCE_CHANNELS = frozenset({SessionChannelType.SILENCE, SessionChannelType.ADMIN_SILENCE})


@dataclass
class Session:
    """One hosted game, tied to a status message in a guild text channel."""

    id: int
    guild_id: int
    channel_id: int
    message_id: int
    user: str
    state: SessionState
    region: LobbyRegion
    lobby_code: str
    created_at: int = 0

    @property
    def in_game(self) -> bool:
        """True while a match is running (playing or discussing)."""
        return self.state in (SessionState.PLAYING, SessionState.DISCUSSING)


@dataclass(frozen=True)
class SessionChannel:
    """A Discord channel owned by a session."""

    channel_id: int
    session_id: int
    type: SessionChannelType
    invite: Optional[str] = None

    def __post_init__(self) -> None:
        if self.invite is not None and self.type is not SessionChannelType.TALKING:
            raise ValueError(f"Only talking channels carry an invite, got {self.type.value}")


@dataclass
class SessionChannels:
    """Role-indexed view over the channels of one session."""

    channels: List[SessionChannel] = field(default_factory=list)

    def _first(self, channel_type: SessionChannelType) -> Optional[SessionChannel]:
        return next((c for c in self.channels if c.type is channel_type), None)

    @property
    def category(self) -> Optional[SessionChannel]:
        return self._first(SessionChannelType.CATEGORY)

    @property
    def talking(self) -> Optional[SessionChannel]:
        return self._first(SessionChannelType.TALKING)

    @property
    def silence(self) -> Optional[SessionChannel]:
        return self._first(SessionChannelType.SILENCE)

    @property
    def admin(self) -> List[SessionChannel]:
        return [c for c in self.channels if c.type is SessionChannelType.ADMIN_SILENCE]

    @property
    def silence_channels(self) -> List[SessionChannel]:
        return [c for c in self.channels if c.type in SILENCE_CHANNELS]

    @property
    def ids(self) -> List[int]:
        return [c.channel_id for c in self.channels]

    def __len__(self) -> int:
        return len(self.channels)
