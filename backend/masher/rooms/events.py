"""Enumerations of every inbound action and outbound room event."""

from __future__ import annotations

from enum import Enum


class ClientEvent(str, Enum):
    """Actions a session can send."""

    CREATE_ROOM = "create-room"
    JOIN_ROOM = "join-room"
    TOGGLE_READY = "toggle-ready"
    BUTTON_CLICK = "button-click"
    RESET_GAME = "reset-game"
    CHAT_MESSAGE = "chat-message"
    LEAVE_ROOM = "leave-room"


class ServerEvent(str, Enum):
    """Events pushed to sessions."""

    CONNECTED = "connected"
    ACK = "ack"
    ERROR = "error"
    ROOM_UPDATE = "room-update"
    GAME_STARTING = "game-starting"
    COUNTDOWN_UPDATE = "countdown-update"
    GAME_STARTED = "game-started"
    TIMER_UPDATE = "timer-update"
    SCORE_UPDATE = "score-update"
    GAME_ENDED = "game-ended"
    CHAT_MESSAGE = "chat-message"
