"""
Impostor - Status Presenter
===========================

Builds the status embed shown for a session. Every function here is pure:
the same session and channels always give the same embed.
"""

from typing import Optional

import discord

from impostor.core.colors import COLOR_ERROR, COLOR_INFO, COLOR_LOADING, COLOR_WARN
from impostor.core.constants import (
    EMBED_TITLE_PREFIX,
    FOOTER_ICON_URL,
    FOOTER_TEXT,
    GAME_URL,
    INVITE_URL_TEMPLATE,
    LOADING_EMOJI,
)
from .models import LobbyRegion, Session, SessionChannels, SessionEnd


def _game_link() -> str:
    return f"[Among Us]({GAME_URL})"


def _join_voice_text(channels: SessionChannels) -> str:
    talking = channels.talking
    if talking is None:
        return ""
    text = f" Join the voice channel <#{talking.channel_id}>"
    if talking.invite:
        text += f" or click [here]({INVITE_URL_TEMPLATE.format(invite=talking.invite)})"
    return text + " to join the voice chat."


def _with_footer(embed: discord.Embed) -> discord.Embed:
    embed.set_footer(text=FOOTER_TEXT, icon_url=FOOTER_ICON_URL)
    return embed


# =============================================================================
# Non-terminal Variants
# =============================================================================

def build_loading_embed(region: LobbyRegion, code: str) -> discord.Embed:
    """Shown while the game client connects to the lobby."""
    return discord.Embed(
        color=COLOR_LOADING,
        description=f"{LOADING_EMOJI} Attempting to connect to lobby `{code}` on {region.value}...",
    )


def build_lobby_embed(session: Session, channels: SessionChannels) -> discord.Embed:
    """Lobby is open: how to join the voice chat and the game."""
    embed = discord.Embed(
        color=COLOR_INFO,
        title=f"{EMBED_TITLE_PREFIX} - {session.region.value} - {session.lobby_code}",
        description=(
            f"{session.user} is hosting a game of {_game_link()}!"
            f"{_join_voice_text(channels)}"
            f" To join the Among Us lobby, select the **{session.region.value}** server"
            f" and enter code `{session.lobby_code}`."
        ),
    )
    return _with_footer(embed)


def build_playing_embed(session: Session, channels: SessionChannels) -> discord.Embed:
    """Match running (playing or discussing): voice chat open, lobby closed."""
    embed = discord.Embed(
        color=COLOR_WARN,
        title=f"{EMBED_TITLE_PREFIX} - {session.region.value} - {session.lobby_code} (In Game)",
        description=(
            f"{session.user} is hosting a game of {_game_link()}!"
            f"{_join_voice_text(channels)}"
            f" ~~To join the Among Us lobby, select the **{session.region.value}** server"
            f" and enter code `{session.lobby_code}`.~~"
            " The lobby is currently ongoing! You'll need to wait for the round to end"
            " before you can join."
        ),
    )
    return _with_footer(embed)


def build_status_embed(session: Session, channels: SessionChannels) -> discord.Embed:
    """Embed for the session's current state."""
    if session.in_game:
        return build_playing_embed(session, channels)
    return build_lobby_embed(session, channels)


# =============================================================================
# Terminal Variants
# =============================================================================

def build_session_over_embed(session: Session) -> discord.Embed:
    """The lobby closed normally."""
    return discord.Embed(
        color=COLOR_ERROR,
        title=f"{EMBED_TITLE_PREFIX} - Session Over",
        description=f"{session.user} was hosting a game of {_game_link()} here, but the lobby closed.",
    )


def build_stale_embed(session: Session) -> discord.Embed:
    """The connection was lost or the bot restarted mid-session."""
    return discord.Embed(
        color=COLOR_ERROR,
        title=f"{EMBED_TITLE_PREFIX} - Session Over",
        description=(
            f"{session.user} was hosting a game of {_game_link()} here, but an unexpected"
            " error happened. Try again in a bit?"
        ),
    )


def build_error_embed(error: str) -> discord.Embed:
    """Setting up the session failed (lobby unreachable, bad code...)."""
    return discord.Embed(
        color=COLOR_ERROR,
        title=f"{EMBED_TITLE_PREFIX} - Error",
        description=error,
    )


def build_ended_embed(session: Session, reason: Optional[SessionEnd]) -> discord.Embed:
    """Terminal embed for an ended session."""
    if reason is SessionEnd.LOBBY_CLOSED:
        return build_session_over_embed(session)
    return build_stale_embed(session)
