"""Shared fixtures for room, clock and gateway tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from itertools import count

import pytest

from masher.rooms.codes import ROOM_CODE_ALPHABET
from masher.rooms.codes import ROOM_CODE_LENGTH
from masher.rooms.registry import RoomRegistry


@pytest.fixture(autouse=True)
def _isolate_masher_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop MASHER_* variables from the developer shell so defaults apply."""
    for key in list(os.environ):
        if key.upper().startswith("MASHER_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def sequential_codes():
    """Deterministic code factory: AAAA, AAAB, ... in creation order."""
    counter = count()

    def _next_code() -> str:
        value = next(counter)
        chars = []
        for _ in range(ROOM_CODE_LENGTH):
            value, index = divmod(value, len(ROOM_CODE_ALPHABET))
            chars.append(ROOM_CODE_ALPHABET[index])
        return "".join(reversed(chars))

    return _next_code


@pytest.fixture
def registry(sequential_codes) -> RoomRegistry:
    return RoomRegistry(code_factory=sequential_codes)
