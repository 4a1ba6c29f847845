"""
Impostor - Session Runner
=========================

Runs the headless game client for one session and turns its event stream
into state machine calls.

The client is started as `<client command> <server ip> <lobby code>` and
prints one JSON object per line on stdout:

    {"type": "connect"}                 joined the lobby
    {"type": "talkingEnd"}              match started / discussion over
    {"type": "talkingStart"}            discussion started
    {"type": "gameEnd"}                 back in the lobby
    {"type": "disconnect"}              lobby closed
    {"type": "error", "message": "..."} could not join

Events are handled strictly one after another, which keeps transitions for
a session in order.
"""

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Sequence, Union

import discord

from impostor.core.config import config
from impostor.core.logger import log
from .channels import ChannelAllocator
from .models import LobbyRegion, Session, SessionEnd, SessionState

if TYPE_CHECKING:
    from .state_machine import SessionStateMachine


CONNECT_FAILED_MESSAGE = "Could not start the Among Us client. Try again in a bit?"
CONNECT_TIMEOUT_MESSAGE = "Timed out while connecting to lobby `{code}` on {region}. Is the code right?"
CHANNELS_FAILED_MESSAGE = "Connected to the lobby, but I couldn't create the voice channels. Do I have the Manage Channels permission?"
DEFAULT_ERROR_MESSAGE = "Something went wrong while connecting to the lobby."


class ClientEvent(str, Enum):
    """Event types emitted by the game client."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"
    TALKING_START = "talkingStart"
    TALKING_END = "talkingEnd"
    GAME_END = "gameEnd"
    ERROR = "error"


@dataclass(frozen=True)
class ClientMessage:
    """One decoded line of client output."""

    event: ClientEvent
    message: str = ""


PHASE_EVENTS: Dict[ClientEvent, SessionState] = {
    ClientEvent.TALKING_END: SessionState.PLAYING,
    ClientEvent.TALKING_START: SessionState.DISCUSSING,
    ClientEvent.GAME_END: SessionState.LOBBY,
}


def parse_client_event(line: Union[bytes, str]) -> Optional[ClientMessage]:
    """Decode one line of client output. Returns None for anything unusable."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line:
        return None

    try:
        payload = json.loads(line)
        event = ClientEvent(payload["type"])
    except (ValueError, KeyError, TypeError):
        log.tree("Unknown Client Output", [
            ("Line", line[:100]),
        ], emoji="❓")
        return None

    return ClientMessage(event=event, message=str(payload.get("message") or ""))


class SessionRunner:
    """Spawns the game client for a session and follows its events."""

    def __init__(
        self,
        allocator: ChannelAllocator,
        state_machine: "SessionStateMachine",
        command: Optional[Sequence[str]] = None,
        servers: Optional[Dict[LobbyRegion, str]] = None,
        connect_timeout: Optional[float] = None,
    ) -> None:
        self.allocator = allocator
        self.state_machine = state_machine
        self.command = tuple(command if command is not None else config.CLIENT_COMMAND)
        self.servers = servers or {
            LobbyRegion.NORTH_AMERICA: config.SERVER_NORTH_AMERICA,
            LobbyRegion.EUROPE: config.SERVER_EUROPE,
            LobbyRegion.ASIA: config.SERVER_ASIA,
        }
        self.connect_timeout = connect_timeout if connect_timeout is not None else config.CLIENT_CONNECT_TIMEOUT

    async def run(self, session: Session) -> None:
        """Start the client and follow it until the session is over."""
        cmd = [*self.command, self.servers[session.region], session.lobby_code]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            log.error_tree("Client Start Failed", e, [
                ("Session ID", str(session.id)),
                ("Command", " ".join(cmd)[:100]),
            ])
            await self.state_machine.fail(session, CONNECT_FAILED_MESSAGE)
            return

        log.tree("Client Started", [
            ("Session ID", str(session.id)),
            ("PID", str(process.pid)),
            ("Region", session.region.value),
            ("Code", session.lobby_code),
        ], emoji="🚀")

        try:
            await self.consume(session, process.stdout)
        finally:
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            log.tree("Client Stopped", [
                ("Session ID", str(session.id)),
                ("Exit Code", str(process.returncode)),
            ], emoji="🛑")

    async def consume(self, session: Session, stream: asyncio.StreamReader) -> None:
        """
        Handle client events until a terminal one arrives.

        The first usable event must arrive within the connect timeout;
        unusable output does not extend it. If the stream ends without a
        disconnect or error, the connection was lost and the session ends
        as stale.
        """
        try:
            message = await asyncio.wait_for(self._next_event(session, stream), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            await self.state_machine.fail(session, CONNECT_TIMEOUT_MESSAGE.format(
                code=session.lobby_code,
                region=session.region.value,
            ))
            return

        while message is not None:
            try:
                if await self.handle(session, message):
                    return
            except Exception as e:
                log.error_tree("Client Event Failed", e, [
                    ("Session ID", str(session.id)),
                    ("Event", message.event.value),
                ])
            message = await self._next_event(session, stream)

        log.tree("Client Stream Ended", [
            ("Session ID", str(session.id)),
            ("Reason", "No disconnect received"),
        ], emoji="💥")
        await self.state_machine.end(session, SessionEnd.STALE)

    async def _next_event(self, session: Session, stream: asyncio.StreamReader) -> Optional[ClientMessage]:
        """Read until a usable event arrives. Returns None at end of stream."""
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # readline already dropped the oversized line from the buffer
                log.tree("Client Line Too Long", [
                    ("Session ID", str(session.id)),
                ], emoji="❓")
                continue

            if not line:
                return None

            message = parse_client_event(line)
            if message is not None:
                return message

    async def handle(self, session: Session, message: ClientMessage) -> bool:
        """Apply one client event. Returns True once the session is finished."""
        if message.event is ClientEvent.CONNECT:
            try:
                await self.allocator.create_session_channels(session)
            except discord.HTTPException as e:
                log.error_tree("Session Channels Failed", e, [
                    ("Session ID", str(session.id)),
                ])
                await self.state_machine.fail(session, CHANNELS_FAILED_MESSAGE)
                return True
            await self.state_machine.transition(session, SessionState.LOBBY)
            return False

        if message.event in PHASE_EVENTS:
            await self.state_machine.transition(session, PHASE_EVENTS[message.event])
            return False

        if message.event is ClientEvent.DISCONNECT:
            await self.state_machine.end(session, SessionEnd.LOBBY_CLOSED)
            return True

        await self.state_machine.fail(session, message.message or DEFAULT_ERROR_MESSAGE)
        return True
