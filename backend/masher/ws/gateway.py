"""Session gateway: translate client frames into room actions and fan out results."""

from __future__ import annotations

from collections.abc import Awaitable
from collections.abc import Callable
import logging
from typing import Any

from pydantic import ValidationError

from masher.core.player_name import PlayerNameValidationError
from masher.core.player_name import PlayerProfile
from masher.core.player_name import normalize_player_profile
from masher.rooms import machine
from masher.rooms.clock import MatchClock
from masher.rooms.codes import normalize_room_code
from masher.rooms.errors import GameInProgressError
from masher.rooms.errors import InvalidPlayerNameError
from masher.rooms.errors import RoomError
from masher.rooms.errors import RoomFullError
from masher.rooms.errors import RoomNotFoundError
from masher.rooms.events import ClientEvent
from masher.rooms.events import ServerEvent
from masher.rooms.models import ChatMessageRequest
from masher.rooms.models import JoinRoomRequest
from masher.rooms.models import PlayerInfo
from masher.rooms.models import RoomActionRequest
from masher.rooms.registry import Phase
from masher.rooms.registry import RoomRegistry
from masher.rooms.views import room_state_payload

from .broadcast import ConnectionHub
from .protocol import ProtocolError
from .protocol import parse_client_frame

logger = logging.getLogger(__name__)

MAX_CHAT_MESSAGE_LENGTH = 200

Handler = Callable[[str, dict[str, Any]], Awaitable[dict[str, Any] | None]]


class SessionGateway:
    """Maps one connected session to actions on the room it belongs to."""

    def __init__(self, registry: RoomRegistry, clock: MatchClock, hub: ConnectionHub) -> None:
        self._registry = registry
        self._clock = clock
        self._hub = hub
        self._handlers: dict[ClientEvent, Handler] = {
            ClientEvent.CREATE_ROOM: self.create_room,
            ClientEvent.JOIN_ROOM: self.join_room,
            ClientEvent.TOGGLE_READY: self.toggle_ready,
            ClientEvent.BUTTON_CLICK: self.button_click,
            ClientEvent.RESET_GAME: self.reset_game,
            ClientEvent.CHAT_MESSAGE: self.chat_message,
            ClientEvent.LEAVE_ROOM: self.leave_room,
        }

    async def connect(self, session_id: str, websocket: Any) -> None:
        self._hub.register(session_id, websocket)
        logger.info("session connected session=%s", session_id)
        await self._hub.send(session_id, ServerEvent.CONNECTED, {"playerId": session_id})

    async def disconnect(self, session_id: str) -> None:
        """Implicit leave; the round keeps running for everyone else."""
        await self._leave_current_room(session_id)
        self._hub.unregister(session_id)
        logger.info("session disconnected session=%s", session_id)

    async def dispatch(self, session_id: str, message: str) -> None:
        """Decode one frame, run its handler and acknowledge when asked to."""
        try:
            frame = parse_client_frame(message)
        except ProtocolError as exc:
            await self._hub.send(session_id, ServerEvent.ERROR, {"code": "INVALID_FRAME", "message": str(exc)})
            return

        try:
            event = ClientEvent(frame.type)
        except ValueError:
            await self._hub.send(
                session_id,
                ServerEvent.ERROR,
                {"code": "UNKNOWN_EVENT", "message": f"unknown event type {frame.type!r}"},
            )
            return

        try:
            result = await self._handlers[event](session_id, frame.payload)
        except RoomError as exc:
            logger.debug("action rejected session=%s event=%s code=%s", session_id, event.value, exc.code)
            result = {"success": False, "error": exc.code, "message": exc.message}
        except ValidationError:
            result = {"success": False, "error": "INVALID_PAYLOAD", "message": "payload fields have the wrong type"}

        if result is None and frame.request_id is None:
            return
        ack = {"success": True} if result is None else dict(result)
        if frame.request_id is not None:
            ack = {"requestId": frame.request_id, **ack}
        await self._hub.send(session_id, ServerEvent.ACK, ack)

    async def create_room(self, session_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        request = PlayerInfo.model_validate(payload)
        name, color = self._player_profile(request)

        await self._leave_current_room(session_id)
        room = self._registry.create_room()
        with self._registry.lock_room(room.code) as locked:
            machine.add_player(locked, session_id, name, color)
            state = machine.snapshot(locked)

        self._hub.join(session_id, room.code)
        await self._hub.broadcast(room.code, ServerEvent.ROOM_UPDATE, room_state_payload(state))
        return {"success": True, "roomCode": room.code}

    async def join_room(self, session_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        request = JoinRoomRequest.model_validate(payload)
        name, color = self._player_profile(request)
        code = normalize_room_code(request.room_code)

        if self._hub.room_of(session_id) == code:
            return {"success": True, "roomCode": code}

        # Check, leave and add under one lock so a failed join keeps membership.
        with self._registry.lock_room(code) as room:
            if len(room.players) >= room.max_players:
                raise RoomFullError(f"room code={code} is full")
            if room.phase is not Phase.WAITING:
                raise GameInProgressError(f"room code={code} phase={room.phase.value}")
            previous_code = machine.remove_player(self._registry, session_id)
            machine.add_player(room, session_id, name, color)
            state = machine.snapshot(room)

        self._hub.join(session_id, code)
        if previous_code is not None:
            await self._broadcast_room_state(previous_code)
        await self._hub.broadcast(code, ServerEvent.ROOM_UPDATE, room_state_payload(state))
        return {"success": True, "roomCode": code}

    async def toggle_ready(self, session_id: str, payload: dict[str, Any]) -> None:
        code = normalize_room_code(RoomActionRequest.model_validate(payload).room_code)
        with self._registry.lock_room(code) as room:
            if not machine.toggle_ready(room, session_id):
                return None
            state = machine.snapshot(room)
            should_start = machine.all_ready(room)

        await self._hub.broadcast(code, ServerEvent.ROOM_UPDATE, room_state_payload(state))
        if should_start:
            self._clock.schedule_start(code)
        return None

    async def button_click(self, session_id: str, payload: dict[str, Any]) -> None:
        code = normalize_room_code(RoomActionRequest.model_validate(payload).room_code)
        with self._registry.lock_room(code) as room:
            if not machine.register_click(room, session_id):
                return None
            scores = dict(room.scores)

        await self._hub.broadcast(code, ServerEvent.SCORE_UPDATE, {"scores": scores})
        return None

    async def reset_game(self, session_id: str, payload: dict[str, Any]) -> None:
        code = normalize_room_code(RoomActionRequest.model_validate(payload).room_code)
        with self._registry.lock_room(code) as room:
            if machine.find_player(room, session_id) is None:
                return None
            machine.reset_to_waiting(room)
            state = machine.snapshot(room)

        await self._hub.broadcast(code, ServerEvent.ROOM_UPDATE, room_state_payload(state))
        return None

    async def chat_message(self, session_id: str, payload: dict[str, Any]) -> None:
        request = ChatMessageRequest.model_validate(payload)
        code = normalize_room_code(request.room_code)
        text = request.message.strip()[:MAX_CHAT_MESSAGE_LENGTH]
        if not text:
            return None

        with self._registry.lock_room(code) as room:
            player = machine.find_player(room, session_id)
            if player is None:
                return None
            message = {
                "playerId": player.player_id,
                "playerName": player.name,
                "color": player.color,
                "message": text,
            }

        await self._hub.broadcast(code, ServerEvent.CHAT_MESSAGE, message)
        return None

    async def leave_room(self, session_id: str, payload: dict[str, Any]) -> None:
        RoomActionRequest.model_validate(payload)
        await self._leave_current_room(session_id)
        return None

    async def _leave_current_room(self, session_id: str) -> None:
        room_code = machine.remove_player(self._registry, session_id)
        self._hub.leave(session_id)
        if room_code is None:
            return
        await self._broadcast_room_state(room_code)

    async def _broadcast_room_state(self, room_code: str) -> None:
        try:
            with self._registry.lock_room(room_code) as room:
                state = machine.snapshot(room)
        except RoomNotFoundError:
            return
        await self._hub.broadcast(room_code, ServerEvent.ROOM_UPDATE, room_state_payload(state))

    @staticmethod
    def _player_profile(request: PlayerInfo) -> PlayerProfile:
        try:
            return normalize_player_profile(request.name, request.color)
        except PlayerNameValidationError as exc:
            raise InvalidPlayerNameError(str(exc)) from exc


__all__ = [
    "MAX_CHAT_MESSAGE_LENGTH",
    "SessionGateway",
]
