"""Unified {code, message, detail} error bodies for the REST surface."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from masher.rooms.errors import InvalidPlayerNameError
from masher.rooms.errors import InvalidRoomCodeError
from masher.rooms.errors import RoomError
from masher.rooms.errors import RoomNotFoundError

_STATUS_BY_ERROR: dict[type[RoomError], int] = {
    InvalidPlayerNameError: 400,
    InvalidRoomCodeError: 400,
    RoomNotFoundError: 404,
}


def api_error(*, code: str, message: str, detail: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a unified API error payload."""
    return {"code": code, "message": message, "detail": detail or {}}


def room_error_status(exc: RoomError) -> int:
    """Validation errors are 400, a missing room 404, rule conflicts 409."""
    return _STATUS_BY_ERROR.get(type(exc), 409)


async def handle_http_exception(_: Request, exc: HTTPException) -> JSONResponse:
    """Pass unified payloads through; wrap anything else as HTTP_ERROR."""
    if isinstance(exc.detail, dict) and {"code", "message", "detail"} <= set(exc.detail):
        content = exc.detail
    else:
        content = api_error(code="HTTP_ERROR", message=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_room_error(request: Request, exc: RoomError) -> JSONResponse:
    """Room-domain errors that escape a route become unified error bodies."""
    return JSONResponse(
        status_code=room_error_status(exc),
        content=api_error(code=exc.code, message=exc.message, detail=dict(request.path_params)),
    )
