"""
Per-connection state machine for the real-time layer.

A session starts Connected, joins and leaves design rooms, and ends
Disconnected (terminal). Edit intents are persisted through the
MutationApplier and only then broadcast to the whole room, the sender
included, so clients can reconcile their optimistic state against the echo.
Failures are unicast to the originating session as ``error`` frames and
never close the connection.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import ValidationError

from design_sync.protocol.constants import (
    EDIT_INTENTS,
    EVENT_KEY,
    T_BACKGROUND_CHANGE,
    T_ELEMENT_ADD,
    T_ELEMENT_DELETE,
    T_ELEMENT_UPDATE,
    T_JOIN_ROOM,
    T_LEAVE_ROOM,
    T_NAME_CHANGE,
    T_RESIZE,
    T_UPDATE,
)
from design_sync.protocol.messages import (
    ScalarId,
    BackgroundChange,
    EditIntent,
    ElementAdd,
    ElementDelete,
    ElementUpdate,
    ErrorEvent,
    JoinRoom,
    LeaveRoom,
    NameChange,
    Resize,
    Update,
    UserJoined,
    UserLeft,
    dumps,
    parse_inbound,
)

from .errors import DesignSyncError, ElementNotFound
from .mutations import MutationApplier
from .rooms import RoomRegistry, broadcast
from .schemas import Design
from .store import DesignStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _scalar_or_none(value: Any) -> Optional[ScalarId]:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return value


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        # loc[0] is the event tag of the discriminated union
        where = ".".join(str(p) for p in err["loc"][1:]) or str(err["loc"][0])
        parts.append(f"{where}: {err['msg']}")
    return "; ".join(parts)


@dataclass(eq=False)
class ClientSession:
    """One live connection; ``websocket`` is anything with ``async send_text(str)``."""

    websocket: Any
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    rooms: set[str] = field(default_factory=set)
    closed: bool = False

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)

    async def send(self, msg: Union[dict, Any]) -> None:
        await self.send_text(dumps(msg))

    def __repr__(self) -> str:
        return f"ClientSession({self.session_id})"


class SessionCoordinator:
    def __init__(
        self,
        store: DesignStore,
        registry: Optional[RoomRegistry] = None,
        applier: Optional[MutationApplier] = None,
        *,
        debug_log_msgs: bool = False,
    ) -> None:
        self.store = store
        self.registry = registry or RoomRegistry()
        self.applier = applier or MutationApplier(store)
        self.debug_log_msgs = debug_log_msgs
        self.sessions: set[ClientSession] = set()

        self._mutations: dict[str, Callable[[Any], Awaitable[Design]]] = {
            T_UPDATE: self._update,
            T_ELEMENT_ADD: self._element_add,
            T_ELEMENT_UPDATE: self._element_update,
            T_ELEMENT_DELETE: self._element_delete,
            T_BACKGROUND_CHANGE: self._background_change,
            T_RESIZE: self._resize,
            T_NAME_CHANGE: self._name_change,
        }

    # Lifecycle ----------------------------------------------------------------
    def connect(self, websocket: Any) -> ClientSession:
        session = ClientSession(websocket=websocket)
        self.sessions.add(session)
        logger.info("client connected: %s", session.session_id)
        return session

    async def disconnect(self, session: ClientSession) -> None:
        if session.closed:
            return
        session.closed = True
        self.sessions.discard(session)
        logger.info("client disconnected: %s", session.session_id)
        for design_id in list(session.rooms):
            self.registry.leave(design_id, session)
            active = self.registry.active_count(design_id)
            await self.publish(
                design_id,
                UserLeft(design_id=design_id, active_users=active, timestamp=_now_ms()).to_wire(),
            )
            logger.info("auto-removed %s from design %s, active users: %d", session, design_id, active)
        session.rooms.clear()

    async def close(self) -> None:
        """Shutdown: drop every session and room, then release the store."""
        for session in list(self.sessions):
            session.closed = True
            session.rooms.clear()
        self.sessions.clear()
        self.registry.clear()
        await self.store.close()

    # Dispatch -----------------------------------------------------------------
    async def handle(self, session: ClientSession, raw: Union[str, dict]) -> None:
        """Decode one inbound frame and route it. Never raises for bad input."""
        if session.closed:
            return

        event = "unknown"
        try:
            obj = json.loads(raw) if isinstance(raw, str) else raw
        except json.JSONDecodeError as e:
            await self._error(session, event, f"malformed frame: {e.msg}")
            return
        if not isinstance(obj, dict):
            await self._error(session, event, "frame must be a JSON object")
            return

        event = str(obj.get(EVENT_KEY) or "unknown")
        design_id = _str_or_none(obj.get("designId"))
        if self.debug_log_msgs:
            logger.info("[ws:%s] in t=%s", session.session_id, event)
        if event not in EDIT_INTENTS and event not in (T_JOIN_ROOM, T_LEAVE_ROOM):
            await self._error(session, event, f"unknown event: {event}", design_id=design_id)
            return

        try:
            msg = parse_inbound(obj)
        except ValidationError as e:
            await self._error(
                session,
                event,
                f"invalid payload: {_describe(e)}",
                design_id=design_id,
                element_id=_scalar_or_none(obj.get("elementId")),
            )
            return

        if isinstance(msg, JoinRoom):
            await self.join(session, msg)
        elif isinstance(msg, LeaveRoom):
            await self.leave(session, msg)
        else:
            await self.edit(session, msg)

    # Room membership ----------------------------------------------------------
    async def join(self, session: ClientSession, msg: JoinRoom) -> None:
        design_id = msg.design_id
        try:
            exists = await self.store.exists(design_id)
        except DesignSyncError as e:
            await self._error(session, msg.t, e.message, design_id=design_id)
            return
        except Exception as e:
            logger.exception("unexpected error in %s on design %s", msg.t, design_id)
            await self._error(session, msg.t, str(e), design_id=design_id)
            return
        if not exists:
            await self._error(session, msg.t, "Design not found", design_id=design_id)
            return

        self.registry.join(design_id, session)
        session.rooms.add(design_id)
        active = self.registry.active_count(design_id)
        await self.publish(
            design_id,
            UserJoined(design_id=design_id, active_users=active, timestamp=_now_ms()).to_wire(),
        )
        logger.info("client %s joined design %s, active users: %d", msg.client_id, design_id, active)

    async def leave(self, session: ClientSession, msg: LeaveRoom) -> None:
        design_id = msg.design_id
        self.registry.leave(design_id, session)
        session.rooms.discard(design_id)
        active = self.registry.active_count(design_id)
        await self.publish(
            design_id,
            UserLeft(design_id=design_id, active_users=active, timestamp=_now_ms()).to_wire(),
        )
        logger.info("%s left design %s, active users: %d", session, design_id, active)

    # Edits --------------------------------------------------------------------
    async def edit(self, session: ClientSession, msg: EditIntent) -> None:
        event = msg.t
        design_id = msg.design_id
        element_id = getattr(msg, "element_id", None)
        try:
            # The design may have been deleted since the session joined.
            if not await self.store.exists(design_id):
                await self._error(session, event, "Design not found", design_id=design_id)
                return
            design = await self._mutations[event](msg)
        except ElementNotFound as e:
            logger.warning("%s on design %s: element %s not found", event, design_id, e.element_id)
            await self._error(session, event, e.message, design_id=design_id, element_id=element_id)
            return
        except DesignSyncError as e:
            logger.warning("%s on design %s failed: %s", event, design_id, e.message)
            await self._error(session, event, e.message, design_id=design_id, element_id=element_id)
            return
        except Exception as e:
            logger.exception("unexpected error in %s on design %s", event, design_id)
            await self._error(session, event, str(e), design_id=design_id, element_id=element_id)
            return

        await self.publish(design_id, msg.confirmation())
        if self.debug_log_msgs:
            logger.info("%s on design %s applied, version %d", event, design_id, design.version)
        else:
            logger.debug("%s on design %s applied, version %d", event, design_id, design.version)

    async def _update(self, msg: Update) -> Design:
        return await self.applier.replace_fields(msg.design_id, msg.changes)

    async def _element_add(self, msg: ElementAdd) -> Design:
        return await self.applier.append_element(msg.design_id, msg.element)

    async def _element_update(self, msg: ElementUpdate) -> Design:
        return await self.applier.update_element(msg.design_id, msg.element_id, msg.updates)

    async def _element_delete(self, msg: ElementDelete) -> Design:
        return await self.applier.delete_element(msg.design_id, msg.element_id)

    async def _background_change(self, msg: BackgroundChange) -> Design:
        return await self.applier.set_background(msg.design_id, msg.canvas_background)

    async def _resize(self, msg: Resize) -> Design:
        return await self.applier.set_dimensions(msg.design_id, msg.width, msg.height)

    async def _name_change(self, msg: NameChange) -> Design:
        return await self.applier.set_name(msg.design_id, msg.name)

    # Output -------------------------------------------------------------------
    async def publish(self, design_id: str, msg: dict) -> None:
        """Broadcast to every current member of the design's room."""
        await broadcast(self.registry.members(design_id), msg)

    async def _error(
        self,
        session: ClientSession,
        event: str,
        message: str,
        *,
        design_id: Optional[str] = None,
        element_id: Optional[ScalarId] = None,
    ) -> None:
        err = ErrorEvent(event=event, message=message, design_id=design_id, element_id=element_id)
        try:
            await session.send(err)
        except Exception as e:
            logger.warning("could not deliver error to %s: %s", session, e)
