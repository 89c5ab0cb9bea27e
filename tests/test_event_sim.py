from __future__ import annotations

import asyncio
import json

import websockets

from design_sync.tools.event_sim.record_jsonl import record
from design_sync.tools.event_sim.replay_jsonl import load_events, replay


class FakeConnection:
    """Client side of a websocket: serves queued frames, then closes."""

    def __init__(self, incoming=()) -> None:
        self.incoming = list(incoming)
        self.sent: list[dict] = []
        self.url = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def __aiter__(self):
        for frame in self.incoming:
            yield frame


def _connect_to(monkeypatch, conn: FakeConnection) -> None:
    def connect(url, **kwargs):
        conn.url = url
        return conn

    monkeypatch.setattr(websockets, "connect", connect)


def _write(path, lines) -> None:
    path.write_text("\n".join(json.dumps(line) for line in lines) + "\n", encoding="utf-8")


def test_load_events_turns_recorded_confirmations_into_intents(tmp_path) -> None:
    path = tmp_path / "room.jsonl"
    _write(
        path,
        [
            {"ts": 1000, "msg": {"t": "user-joined", "designId": "d1", "activeUsers": 1}},
            {"ts": 1010, "msg": {"t": "element-added", "designId": "d1", "element": {"id": "e1"}}},
            {"ts": 1020, "msg": {"t": "resized", "designId": "d1", "width": 5, "height": 6}},
            {"t": "name-change", "designId": "d1", "name": "raw line"},
        ],
    )

    events = load_events(path)

    assert [(ts, msg["t"]) for ts, msg in events] == [
        (1010, "element-add"),
        (1020, "resize"),
        (None, "name-change"),
    ]


def test_load_events_retargets_and_filters(tmp_path) -> None:
    path = tmp_path / "room.jsonl"
    _write(
        path,
        [
            {"ts": 1, "msg": {"t": "element-added", "designId": "d1", "element": {"id": "e1"}}},
            {"ts": 2, "msg": {"t": "name-changed", "designId": "d1", "name": "x"}},
        ],
    )

    events = load_events(path, design_id="d2", only_t_prefix="element-")

    assert len(events) == 1
    assert events[0][1] == {"t": "element-add", "designId": "d2", "element": {"id": "e1"}}


def test_record_joins_then_writes_each_frame(tmp_path, monkeypatch) -> None:
    conn = FakeConnection(
        [
            '{"t":"user-joined","designId":"d1","activeUsers":1,"timestamp":1}',
            b'{"t":"element-added","designId":"d1","element":{"id":5}}',
        ]
    )
    _connect_to(monkeypatch, conn)
    out = tmp_path / "rec" / "room.jsonl"

    count = asyncio.run(record("ws://test/ws", "d1", out, client_id="rec-1"))

    assert count == 2
    assert conn.url == "ws://test/ws"
    assert conn.sent == [{"t": "join-room", "designId": "d1", "clientId": "rec-1"}]
    lines = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
    assert [line["msg"]["t"] for line in lines] == ["user-joined", "element-added"]
    assert all(isinstance(line["ts"], int) for line in lines)
    assert lines[1]["msg"]["element"] == {"id": 5}


def test_recording_replays_into_another_design(tmp_path, monkeypatch) -> None:
    _connect_to(
        monkeypatch,
        FakeConnection(
            [
                '{"t":"user-joined","designId":"d1","activeUsers":1,"timestamp":1}',
                '{"t":"element-added","designId":"d1","element":{"id":"e1"}}',
                '{"t":"name-changed","designId":"d1","name":"Poster"}',
            ]
        ),
    )
    path = tmp_path / "room.jsonl"
    asyncio.run(record("ws://test/ws", "d1", path))

    target = FakeConnection()
    _connect_to(monkeypatch, target)
    asyncio.run(replay("ws://test/ws", path, design_id="d2", speed=1000.0))

    assert target.sent == [
        {"t": "join-room", "designId": "d2", "clientId": "replay"},
        {"t": "element-add", "designId": "d2", "element": {"id": "e1"}},
        {"t": "name-change", "designId": "d2", "name": "Poster"},
    ]
