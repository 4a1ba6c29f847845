# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from types import SimpleNamespace

from impostor.services.amongus.membership import MembershipIndex
from impostor.services.amongus.models import SessionState


def test_new_index_is_empty() -> None:
    index = MembershipIndex()
    assert len(index) == 0
    assert index.members_of(123) == []
    assert index.is_empty(123)


def test_join_does_not_duplicate() -> None:
    index = MembershipIndex()
    index.on_join(1, 100)
    index.on_join(1, 100)
    index.on_join(2, 100)
    assert index.members_of(100) == [1, 2]


def test_leave_unknown_member_or_channel_is_noop() -> None:
    index = MembershipIndex()
    index.on_leave(1, 100)
    index.on_join(1, 100)
    index.on_leave(2, 100)
    assert index.members_of(100) == [1]


def test_move_never_counts_member_twice() -> None:
    index = MembershipIndex()
    index.on_join(1, 100)
    index.on_move(1, 100, 200)
    assert index.members_of(100) == []
    assert index.members_of(200) == [1]
    assert index.is_empty(100)


def test_members_of_returns_a_copy() -> None:
    index = MembershipIndex()
    index.on_join(1, 100)
    index.members_of(100).append(99)
    assert index.members_of(100) == [1]


def test_forget_channel_and_clear() -> None:
    index = MembershipIndex()
    index.on_join(1, 100)
    index.on_join(2, 200)
    index.forget_channel(100)
    assert index.members_of(100) == []
    index.clear()
    assert len(index) == 0


def test_join_talking_mid_match_lands_in_silence(world) -> None:
    async def scenario():
        session = await world.new_session()
        channels = world.channels(session)
        await world.service.state_machine.transition(session, SessionState.PLAYING)

        await world.join(7, channels.talking.channel_id)
        return channels

    channels = asyncio.run(scenario())
    assert 7 in world.index.members_of(channels.silence.channel_id)
    assert 7 not in world.index.members_of(channels.talking.channel_id)


def test_join_talking_during_lobby_or_discussion_stays(world) -> None:
    async def scenario():
        session = await world.new_session()
        channels = world.channels(session)
        await world.join(7, channels.talking.channel_id)
        await world.service.state_machine.transition(session, SessionState.DISCUSSING)
        await world.join(8, channels.talking.channel_id)
        return channels

    channels = asyncio.run(scenario())
    assert world.index.members_of(channels.talking.channel_id) == [7, 8]
    assert world.platform.moves == []


def test_move_into_talking_mid_match_is_redirected(world) -> None:
    async def scenario():
        session = await world.new_session()
        channels = world.channels(session)
        await world.service.state_machine.transition(session, SessionState.PLAYING)

        world.index.on_join(9, 555)
        world.platform.location[9] = channels.talking.channel_id
        await world.service.on_voice_move(9, 555, channels.talking.channel_id)
        return channels

    channels = asyncio.run(scenario())
    assert world.index.members_of(555) == []
    assert world.index.members_of(channels.talking.channel_id) == []
    assert world.index.members_of(channels.silence.channel_id) == [9]


def _voice(channel_id=None) -> SimpleNamespace:
    return SimpleNamespace(channel=SimpleNamespace(id=channel_id) if channel_id else None)


def _record_index_calls(world, monkeypatch):
    calls = []
    on_join, on_leave = world.index.on_join, world.index.on_leave

    def join(member_id, channel_id):
        calls.append(("join", channel_id))
        on_join(member_id, channel_id)

    def leave(member_id, channel_id):
        calls.append(("leave", channel_id))
        on_leave(member_id, channel_id)

    monkeypatch.setattr(world.index, "on_join", join)
    monkeypatch.setattr(world.index, "on_leave", leave)
    return calls


def test_voice_state_update_dispatch(world, monkeypatch) -> None:
    calls = _record_index_calls(world, monkeypatch)
    member = SimpleNamespace(id=5)

    async def scenario():
        await world.service.on_voice_state_update(member, _voice(), _voice(100))
        await world.service.on_voice_state_update(member, _voice(100), _voice(200))
        # mute/deafen/stream toggles keep the channel
        await world.service.on_voice_state_update(member, _voice(200), _voice(200))
        await world.service.on_voice_state_update(member, _voice(200), _voice())
        # a toggle while disconnected
        await world.service.on_voice_state_update(member, _voice(), _voice())

    asyncio.run(scenario())

    assert calls == [
        ("join", 100),
        ("leave", 100),
        ("join", 200),
        ("leave", 200),
    ]
    assert len(world.index) == 0


def test_voice_state_move_into_talking_mid_match_is_redirected(world) -> None:
    member = SimpleNamespace(id=6)

    async def scenario():
        session = await world.new_session()
        channels = world.channels(session)
        await world.service.on_voice_state_update(member, _voice(), _voice(300))
        await world.service.state_machine.transition(session, SessionState.PLAYING)

        world.platform.location[6] = channels.talking.channel_id
        await world.service.on_voice_state_update(
            member, _voice(300), _voice(channels.talking.channel_id),
        )
        return channels

    channels = asyncio.run(scenario())

    assert world.platform.moves == [(6, channels.silence.channel_id)]
    assert world.index.members_of(300) == []
    assert world.index.members_of(channels.talking.channel_id) == []
    assert world.index.members_of(channels.silence.channel_id) == [6]
