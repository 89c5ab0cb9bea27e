from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Optional, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .constants import CONFIRMATIONS, EVENT_KEY

# Wire names are camelCase (designId, clientId, ...); Python side is snake_case.
# Timestamps are ms since the unix epoch. Clients pick their own for edit
# intents and the server echoes them back untouched.
Timestamp: TypeAlias = Union[int, float]
# Element and client ids are client-chosen JSON scalars, matched by plain equality.
ScalarId: TypeAlias = Union[str, int, float]
Element: TypeAlias = dict[str, Any]


class _Frame(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Dump with wire names, dropping top-level fields the sender left unset."""
        data = self.model_dump(by_alias=True)
        return {k: v for k, v in data.items() if v is not None}


class Hello(_Frame):
    t: Literal["hello"] = "hello"
    session_id: str


class JoinRoom(_Frame):
    t: Literal["join-room"]
    design_id: str
    client_id: Optional[ScalarId] = None


class LeaveRoom(_Frame):
    t: Literal["leave-room"]
    design_id: str


class UserJoined(_Frame):
    t: Literal["user-joined"] = "user-joined"
    design_id: str
    active_users: int
    timestamp: int


class UserLeft(_Frame):
    t: Literal["user-left"] = "user-left"
    design_id: str
    active_users: int
    timestamp: int


class ErrorEvent(_Frame):
    t: Literal["error"] = "error"
    event: str
    message: str
    design_id: Optional[str] = None
    element_id: Optional[ScalarId] = None


class _EditIntent(_Frame):
    design_id: str
    client_id: Optional[ScalarId] = None
    timestamp: Optional[Timestamp] = None

    def confirmation(self) -> dict[str, Any]:
        """The frame broadcast to the room once this edit has been persisted."""
        out = self.to_wire()
        out[EVENT_KEY] = CONFIRMATIONS[self.t]  # type: ignore[attr-defined]
        return out


class Update(_EditIntent):
    t: Literal["update"]
    changes: dict[str, Any]


class ElementAdd(_EditIntent):
    t: Literal["element-add"]
    element: Element


class ElementUpdate(_EditIntent):
    t: Literal["element-update"]
    element_id: ScalarId
    updates: dict[str, Any]


class ElementDelete(_EditIntent):
    t: Literal["element-delete"]
    element_id: ScalarId


class BackgroundChange(_EditIntent):
    t: Literal["background-change"]
    canvas_background: str


class Resize(_EditIntent):
    t: Literal["resize"]
    width: Union[int, float]
    height: Union[int, float]


class NameChange(_EditIntent):
    t: Literal["name-change"]
    name: str


EditIntent: TypeAlias = Union[
    Update,
    ElementAdd,
    ElementUpdate,
    ElementDelete,
    BackgroundChange,
    Resize,
    NameChange,
]
InboundMsg: TypeAlias = Annotated[
    Union[JoinRoom, LeaveRoom, EditIntent],
    Field(discriminator="t"),
]
OutboundMsg: TypeAlias = Union[Hello, UserJoined, UserLeft, ErrorEvent]

INBOUND: TypeAdapter[InboundMsg] = TypeAdapter(InboundMsg)


def parse_inbound(obj: dict[str, Any]) -> InboundMsg:
    """Validate a decoded frame; raises ``pydantic.ValidationError``."""
    return INBOUND.validate_python(obj)


def dumps(msg: dict[str, Any] | _Frame) -> str:
    if isinstance(msg, _Frame):
        msg = msg.to_wire()
    return json.dumps(msg, separators=(",", ":"), ensure_ascii=False)
