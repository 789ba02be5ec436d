"""Room code alphabet, generation and client-input normalization."""

from __future__ import annotations

import random

from masher.rooms.errors import InvalidRoomCodeError

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 4

_system_random = random.SystemRandom()


def generate_room_code(rng: random.Random | None = None) -> str:
    """Draw ROOM_CODE_LENGTH characters uniformly from the unambiguous alphabet."""
    source = rng or _system_random
    return "".join(source.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def is_valid_room_code(code: str) -> bool:
    return len(code) == ROOM_CODE_LENGTH and all(char in ROOM_CODE_ALPHABET for char in code)


def normalize_room_code(raw_code: object) -> str:
    """Trim + upper-case a client supplied code; raise InvalidRoomCodeError when malformed."""
    code = str(raw_code or "").strip().upper()
    if not is_valid_room_code(code):
        raise InvalidRoomCodeError(f"room code {code!r} must be {ROOM_CODE_LENGTH} characters")
    return code
