"""Room REST routes."""

from __future__ import annotations

from fastapi import APIRouter

import masher.runtime as runtime
from masher.rooms import machine
from masher.rooms.codes import normalize_room_code
from masher.rooms.views import room_state_payload

router = APIRouter()


@router.get("/api/health")
def health() -> dict[str, object]:
    """Liveness probe with the live room count."""
    return {"status": "ok", "rooms": runtime.room_registry.room_count()}


@router.get("/api/rooms/{room_code}")
def get_room_detail(room_code: str) -> dict[str, object]:
    """Return one room snapshot; RoomError maps to 400/404 via the app handler."""
    code = normalize_room_code(room_code)
    with runtime.room_registry.lock_room(code) as room:
        state = machine.snapshot(room)
    return room_state_payload(state)
