"""Process-wide runtime state shared by REST and WebSocket handlers."""

from __future__ import annotations

from masher.core.config import Settings
from masher.core.config import load_settings
from masher.core.logging import configure_logging
from masher.rooms.clock import MatchClock
from masher.rooms.registry import RoomRegistry
from masher.ws.broadcast import ConnectionHub
from masher.ws.gateway import SessionGateway


def _build_registry(current: Settings) -> RoomRegistry:
    return RoomRegistry(
        max_players=current.masher_max_players,
        round_duration=current.masher_round_seconds,
        countdown_from=current.masher_countdown_from,
    )


def _build_clock(current: Settings, registry: RoomRegistry, hub: ConnectionHub) -> MatchClock:
    return MatchClock(
        registry,
        hub.broadcast,
        tick_interval=current.masher_tick_interval_seconds,
        settle_delay=current.masher_settle_delay_seconds,
    )


settings = load_settings()
room_registry = _build_registry(settings)
connection_hub = ConnectionHub()
match_clock = _build_clock(settings, room_registry, connection_hub)
session_gateway = SessionGateway(room_registry, match_clock, connection_hub)


def startup() -> None:
    """Reload settings and reset all in-memory room state."""
    global settings, room_registry, connection_hub, match_clock, session_gateway
    settings = load_settings()
    configure_logging(settings.masher_log_level)
    room_registry = _build_registry(settings)
    connection_hub = ConnectionHub()
    match_clock = _build_clock(settings, room_registry, connection_hub)
    session_gateway = SessionGateway(room_registry, match_clock, connection_hub)


async def shutdown() -> None:
    """Cancel any room timers still running."""
    await match_clock.shutdown()


__all__ = [
    "Settings",
    "connection_hub",
    "match_clock",
    "room_registry",
    "session_gateway",
    "settings",
    "shutdown",
    "startup",
]
