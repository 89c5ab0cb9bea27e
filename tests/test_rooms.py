from __future__ import annotations

import asyncio

from conftest import FakeSocket

from design_sync.server.rooms import RoomRegistry, broadcast


def test_join_is_idempotent_and_counts_members() -> None:
    rooms = RoomRegistry()
    a, b = object(), object()

    assert rooms.active_count("d1") == 0
    rooms.join("d1", a)
    rooms.join("d1", a)
    rooms.join("d1", b)

    assert rooms.active_count("d1") == 2
    assert rooms.members("d1") == frozenset({a, b})


def test_empty_room_disappears() -> None:
    rooms = RoomRegistry()
    a = object()
    rooms.join("d1", a)
    assert rooms.rooms() == ["d1"]

    rooms.leave("d1", a)
    assert rooms.rooms() == []
    assert rooms.active_count("d1") == 0
    assert rooms.members("d1") == frozenset()


def test_leave_unknown_room_or_member_is_noop() -> None:
    rooms = RoomRegistry()
    a, b = object(), object()
    rooms.leave("missing", a)
    rooms.join("d1", a)
    rooms.leave("d1", b)
    assert rooms.active_count("d1") == 1


def test_rooms_are_independent() -> None:
    rooms = RoomRegistry()
    a = object()
    rooms.join("d1", a)
    rooms.join("d2", a)
    rooms.leave("d1", a)
    assert rooms.active_count("d1") == 0
    assert rooms.active_count("d2") == 1


def test_broadcast_skips_failing_member() -> None:
    good = FakeSocket("good")
    bad = FakeSocket("bad", broken=True)

    asyncio.run(broadcast([bad, good], {"t": "user-left", "designId": "d1", "activeUsers": 1}))

    assert good.sent == [{"t": "user-left", "designId": "d1", "activeUsers": 1}]
    assert bad.sent == []
