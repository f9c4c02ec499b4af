"""Message envelopes exchanged with the authoring UI, and the outbound queue."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

from variant_wiring.types import ProtocolError

# Inbound
INIT = "init"
CREATE_INTERACTION = "create-interaction"
GET_COMPONENTS = "get-components"
CLEANUP = "cleanup"
CLEANUP_STORED_DATA = "cleanup-stored-data"
CANCEL = "cancel"

# Outbound
SELECTION_CHANGED = "selection-changed"
INIT_SUCCESS = "init-success"
ERROR = "error"
COMPONENTS_DATA = "components-data"
INTERACTION_CREATED = "interaction-created"
CLEANUP_COMPLETE = "cleanup-complete"


@dataclass(frozen=True)
class Envelope:
    type: str
    data: Any = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.data is not None:
            out["data"] = self.data
        if self.message is not None:
            out["message"] = self.message
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def decode(raw: str | dict[str, Any]) -> Envelope:
    """Parse one inbound message.

    Raises:
        ProtocolError: If the message is not a JSON object with a string type.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ProtocolError(f"Message is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ProtocolError(f"Expected message object, got {type(raw).__name__}")
    msg_type = raw.get("type")
    if not isinstance(msg_type, str) or not msg_type:
        raise ProtocolError("Message has no type")
    message = raw.get("message")
    return Envelope(msg_type, raw.get("data"), message if isinstance(message, str) else None)


_Handler = Callable[[Envelope], None]


class Outbox:
    """Queue of outbound envelopes with flush-time delivery.

    Handlers registered with ``subscribe`` receive every envelope, in the
    order posted. Envelopes posted during a flush wait for the next one.
    """

    def __init__(self) -> None:
        self._subscribers: list[_Handler] = []
        self._queue: list[Envelope] = []

    def subscribe(self, handler: _Handler) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: _Handler) -> None:
        try:
            self._subscribers.remove(handler)
        except ValueError:
            pass

    def post(self, msg_type: str, data: Any = None, message: str | None = None) -> None:
        self._queue.append(Envelope(msg_type, data, message))

    def pending(self) -> list[Envelope]:
        return list(self._queue)

    def flush(self) -> None:
        snapshot = self._queue
        self._queue = []
        for envelope in snapshot:
            for handler in self._subscribers:
                handler(envelope)

    def clear(self) -> None:
        self._queue.clear()
