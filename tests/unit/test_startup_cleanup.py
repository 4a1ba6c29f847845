# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio

from impostor.services.amongus.models import SessionState
from impostor.services.amongus.service import AmongUsService


def _seed(world, codes):
    async def scenario():
        sessions = []
        for i, code in enumerate(codes):
            session = await world.new_session(code=code, with_channels=i % 2 == 0)
            if i % 3 == 1:
                world.db.update_session_state(session.id, SessionState.PLAYING)
            sessions.append(session)
        return sessions

    return asyncio.run(scenario())


def test_every_leftover_session_ends_stale(world) -> None:
    sessions = _seed(world, ["AAAAAA", "BBBBBB", "CCCCCC", "DDDDDD"])
    channel_ids = [cid for s in sessions for cid in world.channels(s).ids]

    # A fresh process: same database, empty index
    restarted = AmongUsService(bot=None, db=world.db, platform=world.platform)
    cleaned = asyncio.run(restarted.cleanup_stale_sessions())

    assert cleaned == len(sessions)
    assert world.db.get_all_sessions() == []
    assert sorted(world.platform.deleted) == sorted(channel_ids)
    for session in sessions:
        embed = world.status_embed(session)
        assert embed.title.endswith("Session Over")
        assert "unexpected error happened" in embed.description


def test_cleanup_with_nothing_persisted(world) -> None:
    assert asyncio.run(world.service.cleanup_stale_sessions()) == 0
    assert world.platform.edits == []


def test_unreachable_messages_do_not_stop_cleanup(world, monkeypatch, http_error) -> None:
    sessions = _seed(world, ["EEEEEE", "FFFFFF"])
    edit_embed = world.platform.edit_embed
    gone = sessions[0].message_id

    async def edit_or_fail(channel_id, message_id, embed):
        if message_id == gone:
            raise http_error(404)
        await edit_embed(channel_id, message_id, embed)

    monkeypatch.setattr(world.platform, "edit_embed", edit_or_fail)

    assert asyncio.run(world.service.cleanup_stale_sessions()) == 2
    assert world.db.get_all_sessions() == []
    assert "unexpected error" in world.status_embed(sessions[1]).description


def test_setup_runs_cleanup(world) -> None:
    _seed(world, ["GGGGGG"])
    asyncio.run(world.service.setup())
    assert world.db.get_all_sessions() == []
