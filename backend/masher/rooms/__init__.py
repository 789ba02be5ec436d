"""Room domain package: registry, state machine and match clock."""

from masher.rooms.clock import MatchClock
from masher.rooms.clock import RoomTimer
from masher.rooms.errors import GameInProgressError
from masher.rooms.errors import InvalidPlayerNameError
from masher.rooms.errors import InvalidRoomCodeError
from masher.rooms.errors import RoomError
from masher.rooms.errors import RoomFullError
from masher.rooms.errors import RoomNotFoundError
from masher.rooms.events import ClientEvent
from masher.rooms.events import ServerEvent
from masher.rooms.registry import Phase
from masher.rooms.registry import Player
from masher.rooms.registry import Room
from masher.rooms.registry import RoomRegistry

__all__ = [
    "ClientEvent",
    "GameInProgressError",
    "InvalidPlayerNameError",
    "InvalidRoomCodeError",
    "MatchClock",
    "Phase",
    "Player",
    "Room",
    "RoomError",
    "RoomFullError",
    "RoomNotFoundError",
    "RoomRegistry",
    "RoomTimer",
    "ServerEvent",
]
