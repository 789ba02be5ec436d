"""Room-domain errors returned to clients as stable codes."""

from __future__ import annotations


class RoomError(Exception):
    """Base class for room-domain errors."""

    code = "ROOM_ERROR"
    message = "room operation failed"


class RoomNotFoundError(RoomError):
    """Raised when a room code is not registered (or was removed)."""

    code = "ROOM_NOT_FOUND"
    message = "room not found"


class RoomFullError(RoomError):
    """Raised when trying to join a room at capacity."""

    code = "ROOM_FULL"
    message = "room is full"


class GameInProgressError(RoomError):
    """Raised when joining a room that is not waiting for players."""

    code = "GAME_IN_PROGRESS"
    message = "game already in progress"


class InvalidRoomCodeError(RoomError):
    """Raised when a client supplied room code is malformed."""

    code = "INVALID_ROOM_CODE"
    message = "room code must be 4 characters"


class InvalidPlayerNameError(RoomError):
    """Raised when a display name is empty or too long."""

    code = "INVALID_PLAYER_NAME"
    message = "player name must be 1-16 characters"


__all__ = [
    "GameInProgressError",
    "InvalidPlayerNameError",
    "InvalidRoomCodeError",
    "RoomError",
    "RoomFullError",
    "RoomNotFoundError",
]
