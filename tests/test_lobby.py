import pytest

from sportsquiz.errors import InvalidRoomName, RoomNotFound
from sportsquiz.lobby import RoomDirectory
from sportsquiz.registry import ConnectionRegistry
from sportsquiz.schemas import Player

from conftest import FakeChannel


def creator(pid='a'):
    return Player(id=pid, username=pid.upper())


def test_create_room_rejects_blank_names():
    directory = RoomDirectory()
    for name in ('', '   ', '\t'):
        with pytest.raises(InvalidRoomName):
            directory.create_room(name, 'Football', 4, creator())
    assert directory.rooms == {}


def test_create_room_assigns_unique_ids_and_clamps_capacity():
    directory = RoomDirectory(default_max_players=4, max_players_limit=8, min_players=2)
    r1 = directory.create_room(' Friday Night ', 'Football', None, creator('a'))
    r2 = directory.create_room('Big', 'Soccer', 50, creator('b'))
    r3 = directory.create_room('Tiny', 'Soccer', 1, creator('c'))
    assert len({r1.room_id, r2.room_id, r3.room_id}) == 3
    assert r1.name == 'Friday Night'
    assert r1.max_players == 4
    assert r2.max_players == 8
    assert r3.max_players == 2


def test_list_open_rooms_skips_full_and_started():
    directory = RoomDirectory()
    open_room = directory.create_room('Open', 'Football', 4, creator('a'))
    full = directory.create_room('Full', 'Football', 2, creator('b'))
    full.join(Player(id='c', username='C'))
    started = directory.create_room('Started', 'Football', 4, creator('d'))
    started.join(Player(id='e', username='E'))
    started.set_ready('e', True)
    started.start_match('d')
    assert directory.list_open_rooms() == [open_room]
    assert [s.id for s in directory.summaries(now=0)] == [open_room.room_id]


def test_get_room_and_remove_when_empty():
    directory = RoomDirectory()
    room = directory.create_room('Arena', 'Football', 4, creator('a'))
    assert directory.get_room(room.room_id) is room
    assert directory.room_of('a') is room
    assert directory.remove_room_if_empty(room.room_id) is False
    room.leave('a')
    assert directory.remove_room_if_empty(room.room_id) is True
    assert room.closed is True
    with pytest.raises(RoomNotFound):
        directory.get_room(room.room_id)
    assert directory.remove_room_if_empty(room.room_id) is False


# ---- Connection registry ----

@pytest.mark.asyncio
async def test_registry_send_is_best_effort():
    registry = ConnectionRegistry()
    ok, broken = FakeChannel('ok'), FakeChannel('broken')
    broken.broken = True
    registry.register('ok', ok)
    registry.register('broken', broken)
    await registry.send('ghost', {'type': 'x'})
    await registry.broadcast(['broken', 'ghost', 'ok'], {'type': 'hello'})
    assert ok.sent == [{'type': 'hello'}]
    assert broken.sent == []


def test_registry_unregister_ignores_superseded_channel():
    registry = ConnectionRegistry()
    old, new = FakeChannel(), FakeChannel()
    assert registry.register('a', old) is None
    assert registry.register('a', new) is old
    assert registry.unregister('a', old) is False
    assert registry.channels['a'] is new
    assert registry.unregister('a', new) is True
    assert registry.unregister('a') is False
