# Event name constants (stringly-typed protocol; canonical list lives here)

# Every frame carries its event name under this key.
EVENT_KEY = "t"

T_HELLO = "hello"
T_ERROR = "error"

# client -> server (room membership)
T_JOIN_ROOM = "join-room"
T_LEAVE_ROOM = "leave-room"

# server -> room (membership deltas)
T_USER_JOINED = "user-joined"
T_USER_LEFT = "user-left"

# client -> server (edit intents)
T_UPDATE = "update"
T_ELEMENT_ADD = "element-add"
T_ELEMENT_UPDATE = "element-update"
T_ELEMENT_DELETE = "element-delete"
T_BACKGROUND_CHANGE = "background-change"
T_RESIZE = "resize"
T_NAME_CHANGE = "name-change"

# server -> room (confirmed edits)
T_UPDATE_RECEIVED = "update-received"
T_ELEMENT_ADDED = "element-added"
T_ELEMENT_UPDATED = "element-updated"
T_ELEMENT_DELETED = "element-deleted"
T_BACKGROUND_CHANGED = "background-changed"
T_RESIZED = "resized"
T_NAME_CHANGED = "name-changed"

# inbound edit intent -> confirmed event broadcast to the room
CONFIRMATIONS: dict[str, str] = {
    T_UPDATE: T_UPDATE_RECEIVED,
    T_ELEMENT_ADD: T_ELEMENT_ADDED,
    T_ELEMENT_UPDATE: T_ELEMENT_UPDATED,
    T_ELEMENT_DELETE: T_ELEMENT_DELETED,
    T_BACKGROUND_CHANGE: T_BACKGROUND_CHANGED,
    T_RESIZE: T_RESIZED,
    T_NAME_CHANGE: T_NAME_CHANGED,
}

EDIT_INTENTS = frozenset(CONFIRMATIONS)
