# pylint: disable=missing-module-docstring,missing-function-docstring

from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import discord
import pytest

from impostor.services.amongus.membership import MembershipIndex
from impostor.services.amongus.models import LobbyRegion, Session, SessionChannels
from impostor.services.amongus.service import AmongUsService
from impostor.services.database import Database


def make_http_error(status: int = 400, cls: type = discord.HTTPException) -> discord.HTTPException:
    return cls(SimpleNamespace(status=status, reason="Rejected"), "rejected by fake platform")


class FakePlatform:
    """In-memory stand-in for DiscordPlatform.

    Successful moves are reported back into the membership index the way
    Discord's voice-state events would be.
    """

    def __init__(self) -> None:
        self.index: Optional[MembershipIndex] = None
        self.admins: Set[int] = set()
        self.failing_members: Set[int] = set()
        self.missing_channels: Set[int] = set()
        self.broken_channels: Set[int] = set()

        self.location: Dict[int, int] = {}  # member_id -> channel_id
        self.moves: List[Tuple[int, int]] = []
        self.messages: List[Tuple[int, str]] = []
        self.embeds: Dict[Tuple[int, int], discord.Embed] = {}
        self.edits: List[Tuple[int, int, discord.Embed]] = []
        self.created: List[Dict[str, Any]] = []
        self.deleted: List[int] = []
        self._next_id = 1000

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def send_embed(self, channel_id: int, embed: discord.Embed) -> int:
        message_id = self._new_id()
        self.embeds[(channel_id, message_id)] = embed
        return message_id

    async def edit_embed(self, channel_id: int, message_id: int, embed: discord.Embed) -> None:
        self.embeds[(channel_id, message_id)] = embed
        self.edits.append((channel_id, message_id, embed))

    async def send_message(self, channel_id: int, content: str) -> None:
        self.messages.append((channel_id, content))

    async def create_category(self, guild_id: int, name: str) -> int:
        channel_id = self._new_id()
        self.created.append({"id": channel_id, "name": name, "kind": "category"})
        return channel_id

    async def create_voice_channel(
        self,
        guild_id: int,
        name: str,
        parent_id: Optional[int] = None,
        muted: bool = False,
        private: bool = False,
    ) -> int:
        channel_id = self._new_id()
        self.created.append({
            "id": channel_id,
            "name": name,
            "kind": "voice",
            "parent_id": parent_id,
            "muted": muted,
            "private": private,
        })
        return channel_id

    async def create_invite(self, channel_id: int) -> str:
        return f"invite{channel_id}"

    async def delete_channel(self, channel_id: int, reason: Optional[str] = None) -> bool:
        if channel_id in self.broken_channels:
            raise make_http_error(403, discord.Forbidden)
        if channel_id in self.missing_channels:
            return False
        self.deleted.append(channel_id)
        return True

    async def move_member(self, guild_id: int, member_id: int, channel_id: int) -> None:
        if member_id in self.failing_members:
            raise make_http_error(400)
        self.moves.append((member_id, channel_id))
        previous = self.location.get(member_id)
        self.location[member_id] = channel_id
        if self.index is not None:
            if previous is None:
                self.index.on_join(member_id, channel_id)
            else:
                self.index.on_move(member_id, previous, channel_id)

    def is_admin(self, guild_id: int, member_id: int) -> bool:
        return member_id in self.admins

    def moved_to(self, channel_id: int) -> List[int]:
        return [member for member, channel in self.moves if channel == channel_id]


class World:
    """A service wired to a fake platform and a throwaway database."""

    GUILD_ID = 1
    TEXT_CHANNEL_ID = 10

    def __init__(self, db: Database, platform: FakePlatform) -> None:
        self.db = db
        self.platform = platform
        self.service = AmongUsService(bot=None, db=db, platform=platform)
        platform.index = self.service.index

    @property
    def index(self) -> MembershipIndex:
        return self.service.index

    async def new_session(self, code: str = "ABCDEF", with_channels: bool = True) -> Session:
        session = await self.service.create_session(
            self.GUILD_ID, self.TEXT_CHANNEL_ID, "Host", LobbyRegion.EUROPE, code,
        )
        if with_channels:
            await self.service.allocator.create_session_channels(session)
        return session

    def channels(self, session: Session) -> SessionChannels:
        return self.db.get_session_channels(session.id)

    async def join(self, member_id: int, channel_id: int) -> None:
        """A member connects to a voice channel from outside voice."""
        self.platform.location[member_id] = channel_id
        await self.service.on_voice_join(member_id, channel_id)

    def status_embed(self, session: Session) -> discord.Embed:
        return self.platform.embeds[(session.channel_id, session.message_id)]


@pytest.fixture
def db(tmp_path) -> Database:
    return Database(str(tmp_path / "impostor-test.db"))


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def world(db: Database, platform: FakePlatform) -> World:
    return World(db, platform)


@pytest.fixture
def http_error() -> Callable[..., discord.HTTPException]:
    return make_http_error
