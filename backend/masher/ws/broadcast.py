"""Session connection bookkeeping and room fan-out."""

from __future__ import annotations

import logging
from typing import Any

from masher.rooms.events import ServerEvent

from .protocol import ws_send_event

logger = logging.getLogger(__name__)


class ConnectionHub:
    """Tracks open sockets per session and which room each session listens to.

    All methods run on the event loop thread.
    """

    def __init__(self) -> None:
        self._sockets: dict[str, Any] = {}
        self._room_sessions: dict[str, set[str]] = {}
        self._session_rooms: dict[str, str] = {}

    def register(self, session_id: str, websocket: Any) -> None:
        self._sockets[session_id] = websocket

    def unregister(self, session_id: str) -> None:
        self.leave(session_id)
        self._sockets.pop(session_id, None)

    def join(self, session_id: str, room_code: str) -> None:
        self.leave(session_id)
        self._room_sessions.setdefault(room_code, set()).add(session_id)
        self._session_rooms[session_id] = room_code

    def leave(self, session_id: str) -> str | None:
        room_code = self._session_rooms.pop(session_id, None)
        if room_code is None:
            return None
        listeners = self._room_sessions.get(room_code)
        if listeners is not None:
            listeners.discard(session_id)
            if not listeners:
                self._room_sessions.pop(room_code, None)
        return room_code

    def room_of(self, session_id: str) -> str | None:
        return self._session_rooms.get(session_id)

    def sessions_in(self, room_code: str) -> set[str]:
        return set(self._room_sessions.get(room_code, ()))

    async def send(self, session_id: str, event_type: ServerEvent, payload: dict[str, Any]) -> None:
        websocket = self._sockets.get(session_id)
        if websocket is None:
            return
        try:
            await ws_send_event(websocket, event_type, payload)
        except Exception:
            logger.debug("dropping unreachable session=%s", session_id, exc_info=True)
            self.unregister(session_id)

    async def broadcast(self, room_code: str, event_type: ServerEvent, payload: dict[str, Any]) -> None:
        stale: list[str] = []
        for session_id in sorted(self.sessions_in(room_code)):
            websocket = self._sockets.get(session_id)
            if websocket is None:
                stale.append(session_id)
                continue
            try:
                await ws_send_event(websocket, event_type, payload)
            except Exception:
                stale.append(session_id)

        for session_id in stale:
            logger.debug("dropping stale listener room=%s session=%s", room_code, session_id)
            self.leave(session_id)
