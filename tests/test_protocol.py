from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from design_sync.protocol import CONFIRMATIONS, EDIT_INTENTS
from design_sync.protocol.messages import (
    ElementUpdate,
    ErrorEvent,
    JoinRoom,
    UserJoined,
    dumps,
    parse_inbound,
)
from design_sync.server import coordinator as coordinator_module
from design_sync.server import store as store_module


def test_every_intent_has_a_confirmation() -> None:
    assert EDIT_INTENTS == {
        "update",
        "element-add",
        "element-update",
        "element-delete",
        "background-change",
        "resize",
        "name-change",
    }
    assert CONFIRMATIONS["element-add"] == "element-added"
    assert CONFIRMATIONS["update"] == "update-received"


def test_parse_inbound_uses_camel_case_and_discriminates() -> None:
    msg = parse_inbound(
        {
            "t": "element-update",
            "designId": "d1",
            "clientId": "A",
            "timestamp": 5,
            "elementId": "e1",
            "updates": {"x": 1},
            "extra": "ignored",
        }
    )
    assert isinstance(msg, ElementUpdate)
    assert msg.design_id == "d1"
    assert msg.element_id == "e1"

    join = parse_inbound({"t": "join-room", "designId": "d1"})
    assert isinstance(join, JoinRoom)
    assert join.client_id is None


def test_parse_inbound_rejects_missing_fields() -> None:
    with pytest.raises(ValidationError):
        parse_inbound({"t": "element-add", "designId": "d1"})


def test_confirmation_echoes_payload_without_unset_fields() -> None:
    msg = parse_inbound({"t": "element-delete", "designId": "d1", "elementId": "e1", "extra": 1})
    assert msg.confirmation() == {"t": "element-deleted", "designId": "d1", "elementId": "e1"}


def test_confirmation_keeps_nulls_inside_payload() -> None:
    msg = parse_inbound({"t": "update", "designId": "d1", "changes": {"description": None}})
    assert msg.confirmation()["changes"] == {"description": None}


def test_dumps_is_compact_and_uses_wire_names() -> None:
    frame = UserJoined(design_id="d1", active_users=2, timestamp=10)
    assert dumps(frame) == '{"t":"user-joined","designId":"d1","activeUsers":2,"timestamp":10}'

    err = json.loads(dumps(ErrorEvent(event="resize", message="Design not found", design_id="d1")))
    assert err == {"t": "error", "event": "resize", "message": "Design not found", "designId": "d1"}


@pytest.mark.parametrize("module", [store_module, coordinator_module])
def test_module_docstrings_are_visible(module) -> None:
    assert module.__doc__ and module.__doc__.strip()
