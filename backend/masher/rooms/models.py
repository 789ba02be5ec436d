"""Pydantic models for inbound session frames and their payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class ClientFrame(BaseModel):
    """One JSON frame received on the session WebSocket."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    request_id: str | int | None = Field(default=None, alias="requestId")


class PlayerInfo(BaseModel):
    """create-room payload; name is validated by the gateway."""

    name: str = ""
    color: str | None = None


class JoinRoomRequest(PlayerInfo):
    """join-room payload."""

    model_config = ConfigDict(populate_by_name=True)

    room_code: str = Field(default="", alias="roomCode")


class RoomActionRequest(BaseModel):
    """toggle-ready / button-click / reset-game / leave-room payload."""

    model_config = ConfigDict(populate_by_name=True)

    room_code: str = Field(default="", alias="roomCode")


class ChatMessageRequest(RoomActionRequest):
    """chat-message payload."""

    message: str = ""
