from __future__ import annotations

import logging
from typing import Any, Hashable, Iterable

from design_sync.protocol.messages import dumps

logger = logging.getLogger(__name__)


class RoomRegistry:
    """
    design id -> sessions currently in that design's room.

    Rooms are derived state: an empty room is simply absent from the mapping.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[Hashable]] = {}

    def join(self, design_id: str, session: Hashable) -> None:
        self._rooms.setdefault(design_id, set()).add(session)

    def leave(self, design_id: str, session: Hashable) -> None:
        members = self._rooms.get(design_id)
        if members is None:
            return
        members.discard(session)
        if not members:
            del self._rooms[design_id]

    def active_count(self, design_id: str) -> int:
        return len(self._rooms.get(design_id, ()))

    def members(self, design_id: str) -> frozenset:
        return frozenset(self._rooms.get(design_id, ()))

    def rooms(self) -> list[str]:
        return list(self._rooms)

    def clear(self) -> None:
        self._rooms.clear()


async def broadcast(members: Iterable[Any], msg: dict) -> None:
    """Send ``msg`` to every member; a failed send is logged and skipped."""
    data = dumps(msg)
    for member in list(members):
        try:
            await member.send_text(data)
        except Exception as e:
            logger.warning("broadcast of %s to %s failed: %s", msg.get("t"), member, e)
