"""Phase-gated room transitions and player/score mutations.

Every function here is pure in-memory logic over one ``Room``. Callers hold
the room lock from ``RoomRegistry.lock_room`` for the whole read-modify-write;
``remove_player`` is the exception because it has to find the room first and
takes the locks itself.

Actions attempted in a phase that does not allow them return ``False`` and
leave the room untouched. Stray clicks after the round ends are expected and
are not errors.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from masher.rooms.errors import GameInProgressError
from masher.rooms.errors import RoomFullError
from masher.rooms.errors import RoomNotFoundError
from masher.rooms.registry import Phase
from masher.rooms.registry import Player
from masher.rooms.registry import Room
from masher.rooms.registry import RoomRegistry

logger = logging.getLogger(__name__)

MIN_PLAYERS_TO_START = 2


@dataclass(frozen=True, slots=True)
class PlayerView:
    player_id: str
    name: str
    color: str
    ready: bool


@dataclass(frozen=True, slots=True)
class PlayerResult:
    player_id: str
    name: str
    color: str
    score: int


@dataclass(frozen=True, slots=True)
class RoomState:
    """Read-only projection of one room, taken under its lock."""

    code: str
    phase: Phase
    players: tuple[PlayerView, ...]
    scores: dict[str, int]
    countdown_value: int
    time_left: int
    max_players: int


def find_player(room: Room, player_id: str) -> Player | None:
    for player in room.players:
        if player.player_id == player_id:
            return player
    return None


def add_player(room: Room, player_id: str, name: str, color: str) -> Player:
    """Append a waiting player with score 0; join order is kept."""
    existing = find_player(room, player_id)
    if existing is not None:
        return existing

    if len(room.players) >= room.max_players:
        raise RoomFullError(f"room code={room.code} is full")
    if room.phase is not Phase.WAITING:
        raise GameInProgressError(f"room code={room.code} phase={room.phase.value}")

    player = Player(player_id=player_id, name=name, color=color, ready=False)
    room.players.append(player)
    room.scores[player_id] = 0
    logger.info("player joined room=%s player=%s name=%r", room.code, player_id, name)
    return player


def remove_player(registry: RoomRegistry, player_id: str) -> str | None:
    """Drop a player from whichever room holds them and return that room code.

    An emptied room has its timers cancelled and is removed from the registry.
    Any departure while waiting clears every remaining ready flag, even when the
    departing player was never ready.
    """
    for candidate in registry.list_rooms():
        try:
            with registry.lock_room(candidate.code) as room:
                player = find_player(room, player_id)
                if player is None:
                    continue

                room.players.remove(player)
                room.scores.pop(player_id, None)
                logger.info("player left room=%s player=%s", room.code, player_id)

                if not room.players:
                    clear_timers(room)
                    registry.remove_room(room.code)
                elif room.phase is Phase.WAITING:
                    for remaining in room.players:
                        remaining.ready = False
                return room.code
        except RoomNotFoundError:
            continue
    return None


def toggle_ready(room: Room, player_id: str) -> bool:
    if room.phase is not Phase.WAITING:
        return False
    player = find_player(room, player_id)
    if player is None:
        return False
    player.ready = not player.ready
    logger.debug("ready toggled room=%s player=%s ready=%s", room.code, player_id, player.ready)
    return True


def all_ready(room: Room) -> bool:
    """A solo room never starts; at least two contestants must be ready."""
    if room.phase is not Phase.WAITING:
        return False
    if len(room.players) < MIN_PLAYERS_TO_START:
        return False
    return all(player.ready for player in room.players)


def start_countdown(room: Room) -> bool:
    if room.phase is not Phase.WAITING:
        return False
    room.phase = Phase.COUNTDOWN
    room.countdown_value = room.countdown_from
    for player_id in room.scores:
        room.scores[player_id] = 0
    logger.info("countdown started room=%s players=%d", room.code, len(room.players))
    return True


def tick_countdown(room: Room) -> bool:
    if room.phase is not Phase.COUNTDOWN:
        return False
    room.countdown_value -= 1
    if room.countdown_value <= 0:
        room.countdown_value = 0
        room.phase = Phase.PLAYING
        room.time_left = room.round_duration
        logger.info("round started room=%s duration=%ds", room.code, room.round_duration)
    return True


def register_click(room: Room, player_id: str) -> bool:
    if room.phase is not Phase.PLAYING:
        return False
    if player_id not in room.scores:
        return False
    room.scores[player_id] += 1
    return True


def tick_round(room: Room) -> bool:
    if room.phase is not Phase.PLAYING:
        return False
    room.time_left -= 1
    if room.time_left <= 0:
        room.time_left = 0
        room.phase = Phase.FINISHED
        if room.round_timer is not None:
            room.round_timer.cancel()
            room.round_timer = None
        logger.info("round finished room=%s", room.code)
    return True


def compute_results(room: Room) -> list[PlayerResult]:
    """Players by score descending; ties keep join order."""
    results = [
        PlayerResult(
            player_id=player.player_id,
            name=player.name,
            color=player.color,
            score=room.scores.get(player.player_id, 0),
        )
        for player in room.players
    ]
    results.sort(key=lambda item: item.score, reverse=True)
    return results


def reset_to_waiting(room: Room) -> None:
    clear_timers(room)
    room.phase = Phase.WAITING
    room.time_left = room.round_duration
    room.countdown_value = room.countdown_from
    for player in room.players:
        player.ready = False
    for player_id in room.scores:
        room.scores[player_id] = 0
    logger.info("room reset to waiting room=%s", room.code)


def clear_timers(room: Room) -> None:
    if room.countdown_timer is not None:
        room.countdown_timer.cancel()
        room.countdown_timer = None
    if room.round_timer is not None:
        room.round_timer.cancel()
        room.round_timer = None


def snapshot(room: Room) -> RoomState:
    return RoomState(
        code=room.code,
        phase=room.phase,
        players=tuple(
            PlayerView(
                player_id=player.player_id,
                name=player.name,
                color=player.color,
                ready=player.ready,
            )
            for player in room.players
        ),
        scores=dict(room.scores),
        countdown_value=room.countdown_value,
        time_left=room.time_left,
        max_players=room.max_players,
    )


__all__ = [
    "MIN_PLAYERS_TO_START",
    "PlayerResult",
    "PlayerView",
    "RoomState",
    "add_player",
    "all_ready",
    "clear_timers",
    "compute_results",
    "find_player",
    "register_click",
    "remove_player",
    "reset_to_waiting",
    "snapshot",
    "start_countdown",
    "tick_countdown",
    "tick_round",
    "toggle_ready",
]
