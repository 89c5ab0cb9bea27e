from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Optional

import websockets

from design_sync.protocol.constants import CONFIRMATIONS, EDIT_INTENTS, T_JOIN_ROOM
from design_sync.protocol.messages import dumps

# confirmed event -> the edit intent that produced it
_INTENT_FOR = {confirmed: intent for intent, confirmed in CONFIRMATIONS.items()}


def load_events(
    jsonl_path: Path,
    *,
    design_id: Optional[str] = None,
    only_t_prefix: Optional[str] = None,
) -> list[tuple[Optional[int], dict]]:
    """
    Read edit intents from a JSONL recording.

    Expected JSONL format:
      - record_jsonl.py output: {"ts": <ms>, "msg": {...}}
      - or raw messages per line: {...}

    Confirmed events (``element-added`` etc.) are turned back into the intent
    that produced them; anything else that is not an edit intent is skipped.
    If ``design_id`` is given every event is retargeted at that design.
    """
    events: list[tuple[Optional[int], dict]] = []

    for line in jsonl_path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        obj = json.loads(line)
        ts: Optional[int] = None
        if isinstance(obj, dict) and isinstance(obj.get("msg"), dict):
            raw_ts = obj.get("ts")
            ts = int(raw_ts) if isinstance(raw_ts, (int, float)) else None
            obj = obj["msg"]
        if not isinstance(obj, dict):
            continue

        msg = dict(obj)
        t = _INTENT_FOR.get(msg.get("t"), msg.get("t"))
        if t not in EDIT_INTENTS:
            continue
        if only_t_prefix and not t.startswith(only_t_prefix):
            continue
        msg["t"] = t
        if design_id is not None:
            msg["designId"] = design_id
        events.append((ts, msg))

    return events


async def replay(
    ws_url: str,
    jsonl_path: Path,
    *,
    design_id: Optional[str] = None,
    speed: float = 1.0,
    default_dt_ms: int = 0,
    only_t_prefix: Optional[str] = None,
) -> None:
    """Replay previously-recorded edit intents into a design room."""
    events = load_events(jsonl_path, design_id=design_id, only_t_prefix=only_t_prefix)
    rooms = sorted({msg["designId"] for _, msg in events if isinstance(msg.get("designId"), str)})

    async with websockets.connect(ws_url, max_size=2**22) as ws:
        for room in rooms:
            await ws.send(dumps({"t": T_JOIN_ROOM, "designId": room, "clientId": "replay"}))

        prev_ts: Optional[int] = None
        for ts, msg in events:
            if ts is not None and prev_ts is not None:
                dt_ms = max(0, ts - prev_ts)
            else:
                dt_ms = default_dt_ms

            prev_ts = ts if ts is not None else prev_ts
            if dt_ms:
                await asyncio.sleep((dt_ms / 1000.0) / max(0.01, speed))

            await ws.send(dumps(msg))


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay recorded edit intents into the server websocket.")
    ap.add_argument("--ws", required=True, help="WebSocket URL, e.g. ws://127.0.0.1:8000/ws")
    ap.add_argument("--in", dest="inp", required=True, help="Input JSONL path")
    ap.add_argument("--design", default=None, help="Retarget every event at this design id")
    ap.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (2.0 = 2x faster)")
    ap.add_argument("--default-dt-ms", type=int, default=0, help="Delay between messages if no timestamps")
    ap.add_argument(
        "--only-t-prefix",
        default=None,
        help="If set, only replay events whose 't' starts with this prefix (e.g. 'element-').",
    )
    args = ap.parse_args()

    asyncio.run(
        replay(
            args.ws,
            Path(args.inp),
            design_id=args.design,
            speed=args.speed,
            default_dt_ms=args.default_dt_ms,
            only_t_prefix=args.only_t_prefix,
        )
    )


if __name__ == "__main__":
    main()
