# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import sqlite3

import pytest

from impostor.bot import ImpostorBot
from impostor.services.amongus.service import SESSION_STORE_FAILED_MESSAGE


def _command(world, content="!amongus eu ABCDEF", author_id=99):
    return asyncio.run(world.service.handle_command(
        guild_id=world.GUILD_ID,
        channel_id=world.TEXT_CHANNEL_ID,
        author_id=author_id,
        author_name="Host",
        content=content,
    ))


def _only_embed(world):
    assert len(world.platform.embeds) == 1
    return next(iter(world.platform.embeds.values()))


def test_valid_command_creates_session_and_starts_runner(world, monkeypatch) -> None:
    started = []
    monkeypatch.setattr(world.service, "start_session", started.append)

    session = _command(world, "!AMONGUS north america qwerty")

    assert session.lobby_code == "QWERTY"
    assert started == [session]
    assert world.db.get_all_sessions() == [session]
    assert "Attempting to connect" in _only_embed(world).description


def test_unhealthy_database_replies_and_marks_message(world, monkeypatch) -> None:
    started = []
    monkeypatch.setattr(world.service, "start_session", started.append)
    world.db._healthy = False

    assert _command(world) is None

    assert started == []
    channel_id, reply = world.platform.messages[-1]
    assert channel_id == world.TEXT_CHANNEL_ID
    assert reply.startswith("<@!99>, sorry but something went wrong:")
    embed = _only_embed(world)
    assert embed.title.endswith("Error")
    assert embed.description == SESSION_STORE_FAILED_MESSAGE


def test_rejected_insert_marks_message(world, monkeypatch) -> None:
    def duplicate(*args, **kwargs):
        raise sqlite3.IntegrityError("UNIQUE constraint failed: sessions.guild_id, sessions.message_id")

    monkeypatch.setattr(world.db, "create_session", duplicate)

    assert _command(world) is None

    assert "UNIQUE constraint failed" in world.platform.messages[-1][1]
    assert _only_embed(world).description == SESSION_STORE_FAILED_MESSAGE


def test_unhealthy_database_keeps_service_detached(db) -> None:
    db._healthy = False
    bot = ImpostorBot()
    bot.db = db

    with pytest.raises(RuntimeError):
        asyncio.run(bot._init_services())
    assert bot.amongus is None
