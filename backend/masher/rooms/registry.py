"""In-memory room models and the process-wide room registry."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
import logging
import threading
from typing import Protocol

from masher.core.config import DEFAULT_COUNTDOWN_FROM
from masher.core.config import DEFAULT_MAX_PLAYERS
from masher.core.config import DEFAULT_ROUND_SECONDS
from masher.rooms.codes import generate_room_code
from masher.rooms.errors import RoomNotFoundError

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Room lifecycle phase; gates which actions are accepted."""

    WAITING = "waiting"
    COUNTDOWN = "countdown"
    PLAYING = "playing"
    FINISHED = "finished"


class TimerHandle(Protocol):
    """Cancellation handle for one scheduled room process."""

    def cancel(self) -> None: ...


@dataclass(slots=True)
class Player:
    """Room member state tracked in memory."""

    player_id: str
    name: str
    color: str
    ready: bool = False


@dataclass(slots=True)
class Room:
    """Room aggregate state. Mutate only while holding the registry room lock."""

    code: str
    max_players: int = DEFAULT_MAX_PLAYERS
    round_duration: int = DEFAULT_ROUND_SECONDS
    countdown_from: int = DEFAULT_COUNTDOWN_FROM
    phase: Phase = Phase.WAITING
    players: list[Player] = field(default_factory=list)
    scores: dict[str, int] = field(default_factory=dict)
    countdown_value: int = DEFAULT_COUNTDOWN_FROM
    time_left: int = DEFAULT_ROUND_SECONDS
    countdown_timer: TimerHandle | None = None
    round_timer: TimerHandle | None = None


class RoomRegistry:
    """Owns every live room, keyed by its short code."""

    def __init__(
        self,
        *,
        max_players: int = DEFAULT_MAX_PLAYERS,
        round_duration: int = DEFAULT_ROUND_SECONDS,
        countdown_from: int = DEFAULT_COUNTDOWN_FROM,
        code_factory: Callable[[], str] = generate_room_code,
    ) -> None:
        if max_players < 1:
            raise ValueError("max_players must be >= 1")

        self.max_players = max_players
        self.round_duration = round_duration
        self.countdown_from = countdown_from
        self._code_factory = code_factory
        self._rooms: dict[str, Room] = {}
        self._room_locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def create_room(self) -> Room:
        """Register a new waiting room under a code not currently in use."""
        with self._guard:
            code = self._code_factory()
            while code in self._rooms:
                code = self._code_factory()

            room = Room(
                code=code,
                max_players=self.max_players,
                round_duration=self.round_duration,
                countdown_from=self.countdown_from,
                countdown_value=self.countdown_from,
                time_left=self.round_duration,
            )
            self._rooms[code] = room
            self._room_locks[code] = threading.RLock()
        logger.info("room created code=%s", code)
        return room

    def get_room(self, code: str) -> Room | None:
        """Return the live room for code, if any."""
        with self._guard:
            return self._rooms.get(code)

    def list_rooms(self) -> list[Room]:
        """Return live rooms sorted by code."""
        with self._guard:
            return [self._rooms[code] for code in sorted(self._rooms)]

    def room_count(self) -> int:
        with self._guard:
            return len(self._rooms)

    def remove_room(self, code: str) -> bool:
        """Forget a room. Callers cancel its timers first."""
        with self._guard:
            room = self._rooms.pop(code, None)
            self._room_locks.pop(code, None)
        if room is None:
            return False
        logger.info("room removed code=%s", code)
        return True

    @contextmanager
    def lock_room(self, code: str) -> Iterator[Room]:
        """Acquire one room write lock and yield the room it guards."""
        with self._guard:
            room = self._rooms.get(code)
            lock = self._room_locks.get(code)
        if room is None or lock is None:
            raise RoomNotFoundError(f"room code={code} not found")

        with lock:
            # The room may have been removed while this caller waited.
            if self.get_room(code) is not room:
                raise RoomNotFoundError(f"room code={code} not found")
            yield room


__all__ = [
    "Phase",
    "Player",
    "Room",
    "RoomRegistry",
    "TimerHandle",
]
