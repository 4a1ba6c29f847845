# pylint: disable=missing-module-docstring,missing-function-docstring

from impostor.core.colors import COLOR_ERROR, COLOR_INFO, COLOR_LOADING, COLOR_WARN
from impostor.services.amongus.models import (
    LobbyRegion,
    Session,
    SessionChannel,
    SessionChannelType,
    SessionChannels,
    SessionEnd,
    SessionState,
)
from impostor.services.amongus.presenter import (
    build_ended_embed,
    build_error_embed,
    build_loading_embed,
    build_status_embed,
)


def _session(state: SessionState = SessionState.LOBBY) -> Session:
    return Session(
        id=1,
        guild_id=1,
        channel_id=10,
        message_id=20,
        user="Molly",
        state=state,
        region=LobbyRegion.NORTH_AMERICA,
        lobby_code="QWERTY",
    )


def _channels(invite=None) -> SessionChannels:
    return SessionChannels([
        SessionChannel(100, 1, SessionChannelType.CATEGORY),
        SessionChannel(101, 1, SessionChannelType.TALKING, invite),
        SessionChannel(102, 1, SessionChannelType.SILENCE),
    ])


def test_loading_embed() -> None:
    embed = build_loading_embed(LobbyRegion.EUROPE, "ABCDEF")
    assert embed.colour.value == COLOR_LOADING
    assert "lobby `ABCDEF` on Europe" in embed.description


def test_lobby_embed_explains_how_to_join() -> None:
    embed = build_status_embed(_session(), _channels("xyz"))

    assert embed.colour.value == COLOR_INFO
    assert embed.title.endswith("North America - QWERTY")
    assert "Molly is hosting" in embed.description
    assert "<#101>" in embed.description
    assert "discord.gg/xyz" in embed.description
    assert "enter code `QWERTY`" in embed.description
    assert "~~" not in embed.description
    assert embed.footer.text


def test_lobby_embed_without_invite_or_channels() -> None:
    with_channel = build_status_embed(_session(), _channels())
    assert "<#101>" in with_channel.description
    assert "click [here]" not in with_channel.description

    no_channels = build_status_embed(_session(), SessionChannels())
    assert "voice channel" not in no_channels.description


def test_in_game_embed_strikes_out_lobby_instructions() -> None:
    embed = build_status_embed(_session(SessionState.PLAYING), _channels("xyz"))

    assert embed.colour.value == COLOR_WARN
    assert embed.title.endswith("(In Game)")
    assert "~~To join the Among Us lobby" in embed.description
    assert "wait for the round to end" in embed.description


def test_rendering_is_idempotent() -> None:
    channels = _channels("xyz")
    for state in SessionState:
        first = build_status_embed(_session(state), channels).to_dict()
        second = build_status_embed(_session(state), channels).to_dict()
        assert first == second


def test_terminal_variants() -> None:
    closed = build_ended_embed(_session(), SessionEnd.LOBBY_CLOSED)
    stale = build_ended_embed(_session(), SessionEnd.STALE)
    error = build_error_embed("Lobby not found.")

    assert closed.description.endswith("but the lobby closed.")
    assert stale.description.endswith("Try again in a bit?")
    assert closed.title == stale.title
    assert error.title.endswith("Error")
    assert error.description == "Lobby not found."
    for embed in (closed, stale, error):
        assert embed.colour.value == COLOR_ERROR


def test_in_game_covers_playing_and_discussing() -> None:
    assert [state for state in SessionState if _session(state).in_game] == [
        SessionState.PLAYING,
        SessionState.DISCUSSING,
    ]
