"""Display names and colors players pick when creating or joining a room.

Names are shown on every scoreboard and chat line, so they are folded to a
single-line NFC form before counting grapheme clusters. Colors are opaque
client tokens: anything printable is kept, anything else falls back to the
default swatch.
"""

from __future__ import annotations

from typing import NamedTuple
import unicodedata

import regex

MIN_NAME_GRAPHEMES = 1
MAX_NAME_GRAPHEMES = 16
MAX_COLOR_LENGTH = 32
DEFAULT_COLOR = "#ffffff"

_GRAPHEME = regex.compile(r"\X")
_WHITESPACE_RUN = regex.compile(r"\s+")
_CONTROL_CHAR = regex.compile(r"\p{Cc}")


class PlayerNameValidationError(ValueError):
    """Raised when a display name is empty, too long or unprintable."""


class PlayerProfile(NamedTuple):
    name: str
    color: str


def fold_player_name(raw_name: str) -> str:
    """NFC, then collapse every whitespace run (newlines included) to one space."""
    normalized = unicodedata.normalize("NFC", raw_name)
    return _WHITESPACE_RUN.sub(" ", normalized).strip()


def count_graphemes(value: str) -> int:
    return len(_GRAPHEME.findall(value))


def validate_player_name(name: str) -> None:
    if _CONTROL_CHAR.search(name):
        raise PlayerNameValidationError("player name contains control characters")
    grapheme_count = count_graphemes(name)
    if not MIN_NAME_GRAPHEMES <= grapheme_count <= MAX_NAME_GRAPHEMES:
        raise PlayerNameValidationError(
            f"player name length must be {MIN_NAME_GRAPHEMES}-{MAX_NAME_GRAPHEMES} characters"
        )


def normalize_color(raw_color: str | None) -> str:
    color = (raw_color or "").strip()
    if not color or _CONTROL_CHAR.search(color):
        return DEFAULT_COLOR
    return color[:MAX_COLOR_LENGTH]


def normalize_player_profile(raw_name: str, raw_color: str | None) -> PlayerProfile:
    """Fold and validate the name, settle the color; raises PlayerNameValidationError."""
    name = fold_player_name(raw_name)
    validate_player_name(name)
    return PlayerProfile(name=name, color=normalize_color(raw_color))


__all__ = [
    "DEFAULT_COLOR",
    "MAX_NAME_GRAPHEMES",
    "PlayerNameValidationError",
    "PlayerProfile",
    "count_graphemes",
    "fold_player_name",
    "normalize_color",
    "normalize_player_profile",
    "validate_player_name",
]
