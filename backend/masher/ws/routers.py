"""WebSocket route for player sessions."""

from __future__ import annotations

import uuid

from fastapi import APIRouter
from fastapi import WebSocket
from fastapi import WebSocketDisconnect

import masher.runtime as runtime

router = APIRouter()


def new_session_id() -> str:
    return uuid.uuid4().hex


@router.websocket("/ws")
async def ws_session(websocket: WebSocket) -> None:
    """Session socket: connected event, then one client frame per text message."""
    await websocket.accept()
    gateway = runtime.session_gateway
    session_id = new_session_id()
    await gateway.connect(session_id, websocket)
    try:
        while True:
            message = await websocket.receive_text()
            await gateway.dispatch(session_id, message)
    except WebSocketDisconnect:
        return
    finally:
        await gateway.disconnect(session_id)
