from .constants import (
    CONFIRMATIONS,
    EDIT_INTENTS,
    EVENT_KEY,
    T_BACKGROUND_CHANGE,
    T_BACKGROUND_CHANGED,
    T_ELEMENT_ADD,
    T_ELEMENT_ADDED,
    T_ELEMENT_DELETE,
    T_ELEMENT_DELETED,
    T_ELEMENT_UPDATE,
    T_ELEMENT_UPDATED,
    T_ERROR,
    T_HELLO,
    T_JOIN_ROOM,
    T_LEAVE_ROOM,
    T_NAME_CHANGE,
    T_NAME_CHANGED,
    T_RESIZE,
    T_RESIZED,
    T_UPDATE,
    T_UPDATE_RECEIVED,
    T_USER_JOINED,
    T_USER_LEFT,
)

__all__ = [
    "CONFIRMATIONS",
    "EDIT_INTENTS",
    "EVENT_KEY",
    "T_HELLO",
    "T_ERROR",
    "T_JOIN_ROOM",
    "T_LEAVE_ROOM",
    "T_USER_JOINED",
    "T_USER_LEFT",
    "T_UPDATE",
    "T_UPDATE_RECEIVED",
    "T_ELEMENT_ADD",
    "T_ELEMENT_ADDED",
    "T_ELEMENT_UPDATE",
    "T_ELEMENT_UPDATED",
    "T_ELEMENT_DELETE",
    "T_ELEMENT_DELETED",
    "T_BACKGROUND_CHANGE",
    "T_BACKGROUND_CHANGED",
    "T_RESIZE",
    "T_RESIZED",
    "T_NAME_CHANGE",
    "T_NAME_CHANGED",
]
