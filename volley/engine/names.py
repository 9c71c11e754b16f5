"""
Name handling — Input sanitization and batch player-list parsing.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field

from volley.config import settings

_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9 \-.'À-ÿ]")
_LIST_DELIMITERS = re.compile(r"[,\n|;]")
_STRICT_NAME = re.compile(r"^[a-zA-Z0-9\s\-'À-ÿ]+$")


class NameValidation(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    cleaned_names: list[str] = Field(default_factory=list)


def sanitize_input(text: object, max_length: Optional[int] = None) -> str:
    """Trim, strip characters outside the allow-list and cap the length."""
    if not isinstance(text, str):
        return ""
    limit = settings.MAX_NAME_LENGTH if max_length is None else max_length
    clean = _DISALLOWED_CHARS.sub("", text.strip())
    return clean[:limit]


def parse_player_list(text: object) -> list[str]:
    """
    Split a pasted player list on commas, newlines, pipes or semicolons.

    Names are trimmed, empties dropped, and duplicates removed
    case-insensitively (the last spelling wins, first position is kept).
    """
    if not text or not isinstance(text, str):
        return []

    unique: dict[str, str] = {}
    for raw in _LIST_DELIMITERS.split(text):
        name = raw.strip()
        if name:
            unique[name.lower()] = name
    return list(unique.values())


def validate_player_names(
    names: list[str],
    max_name_length: int = 50,
    max_players: int = 50,
    allow_special_chars: bool = True,
) -> NameValidation:
    """Check a list of names against size and character constraints."""
    errors: list[str] = []
    cleaned = parse_player_list(",".join(names))

    if not cleaned:
        errors.append("No valid player names provided")
    if len(cleaned) > max_players:
        errors.append(f"Too many players (max: {max_players}, got: {len(cleaned)})")

    for idx, name in enumerate(cleaned):
        if len(name) > max_name_length:
            errors.append(f"Player {idx + 1} name too long (max: {max_name_length} chars)")
        if not allow_special_chars and not _STRICT_NAME.match(name):
            errors.append(f'Player "{name}" contains unsupported characters')

    return NameValidation(valid=not errors, errors=errors, cleaned_names=cleaned)


def format_player_list(names: list[str], max_display: int = 5) -> str:
    if not names:
        return "(no players)"
    shown = ", ".join(names[:max_display])
    rest = len(names) - max_display
    return f"{shown}, +{rest} more" if rest > 0 else shown
