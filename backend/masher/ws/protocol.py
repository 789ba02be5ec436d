"""WebSocket frame encoding and decoding."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from masher.rooms.events import ServerEvent
from masher.rooms.models import ClientFrame

WS_PROTOCOL_VERSION = 1


class ProtocolError(ValueError):
    """Raised when an inbound frame cannot be decoded."""


def ws_event(event_type: ServerEvent, payload: dict[str, Any]) -> dict[str, Any]:
    return {"v": WS_PROTOCOL_VERSION, "type": event_type.value, "payload": payload}


async def ws_send_event(websocket: Any, event_type: ServerEvent, payload: dict[str, Any]) -> None:
    message = ws_event(event_type, payload)
    if hasattr(websocket, "send_json"):
        await websocket.send_json(message)
        return
    if hasattr(websocket, "send_text"):
        await websocket.send_text(json.dumps(message))


def parse_client_frame(message: str) -> ClientFrame:
    """Decode one inbound text frame into a typed envelope."""
    try:
        raw = json.loads(message)
    except json.JSONDecodeError as exc:
        raise ProtocolError("frame is not valid JSON") from exc
    if not isinstance(raw, dict):
        raise ProtocolError("frame must be a JSON object")
    try:
        return ClientFrame.model_validate(raw)
    except ValidationError as exc:
        raise ProtocolError("frame must carry a string type and an object payload") from exc
