from __future__ import annotations

import argparse
import asyncio
import json
import time
from pathlib import Path
from typing import Optional

import websockets

from design_sync.protocol.constants import EVENT_KEY, T_JOIN_ROOM
from design_sync.protocol.messages import dumps


def _now_ms() -> int:
    return int(time.time() * 1000)


async def record(
    ws_url: str,
    design_id: str,
    out_path: Path,
    *,
    client_id: Optional[str] = None,
    echo: bool = False,
) -> int:
    """
    Join a design room and append every frame the server sends to a JSONL file.

    Runs until the server closes the connection; returns the number of frames
    written.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)
    join = {"t": T_JOIN_ROOM, "designId": design_id, "clientId": client_id or "recorder"}
    count = 0
    async with websockets.connect(ws_url, max_size=2**22) as ws:
        await ws.send(dumps(join))
        with out_path.open("a", encoding="utf-8") as f:
            async for raw in ws:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                msg = json.loads(raw)
                if echo:
                    t = msg.get(EVENT_KEY) if isinstance(msg, dict) else None
                    print(f"[record] t={t} msg={msg}")
                f.write(json.dumps({"ts": _now_ms(), "msg": msg}, ensure_ascii=False) + "\n")
                f.flush()
                count += 1
    return count


def main() -> None:
    ap = argparse.ArgumentParser(description="Record a design room's traffic to a JSONL file.")
    ap.add_argument("--ws", required=True, help="WebSocket URL, e.g. ws://127.0.0.1:8000/ws")
    ap.add_argument("--design", required=True, help="Design id whose room to join")
    ap.add_argument("--out", required=True, help="Output JSONL path")
    ap.add_argument("--client-id", default=None, help="clientId to announce on join")
    ap.add_argument("--print", action="store_true", help="Print received messages to stdout")
    args = ap.parse_args()

    asyncio.run(
        record(args.ws, args.design, Path(args.out), client_id=args.client_id, echo=args.print)
    )


if __name__ == "__main__":
    main()
