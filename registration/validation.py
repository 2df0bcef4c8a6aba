"""Completeness and shape checks run before a registration reaches the store."""

from __future__ import annotations

import re
from pathlib import Path

from .roster import TeamDraft

REQUIRED_PLAYER_COUNT = 11
MAX_LOGO_BYTES = 5 * 1024 * 1024
ALLOWED_LOGO_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic", ".heif"}

PHONE_PATTERN = re.compile(r"[6-9][0-9]{9}")
JERSEY_PATTERN = re.compile(r"[0-9]+")
MAX_JERSEY_NUMBER = 999

TEAM_NAME = "team_name"
MANAGER_NAME = "manager_name"
MANAGER_PHONE = "manager_phone"
PLAYERS = "players"
PLAYER_ENTRIES = "player_entries"
LOGO = "logo"


def validate_draft(draft: TeamDraft, *, required_players: int = REQUIRED_PLAYER_COUNT) -> dict[str, str]:
    """Return ``{field: message}`` for every problem found; empty means valid."""
    errors: dict[str, str] = {}

    if not draft.team_name.strip():
        errors[TEAM_NAME] = "Team name is required"
    if not draft.manager_name.strip():
        errors[MANAGER_NAME] = "Manager name is required"

    phone = draft.manager_phone.strip()
    if not phone:
        errors[MANAGER_PHONE] = "Manager phone is required"
    elif not PHONE_PATTERN.fullmatch(phone):
        errors[MANAGER_PHONE] = "Enter a valid 10-digit mobile number"

    filled = draft.roster.filled_entries()
    if len(filled) + len(draft.roster.overflow) != required_players:
        errors[PLAYERS] = f"Exactly {required_players} players required"

    entry_error = _first_entry_error(filled)
    if entry_error:
        errors[PLAYER_ENTRIES] = entry_error

    logo_error = _logo_error(draft)
    if logo_error:
        errors[LOGO] = logo_error

    return errors


def _first_entry_error(entries) -> str | None:
    seen: set[int] = set()
    for number, entry in enumerate(entries, start=1):
        label = entry.name.strip()
        if not entry.position.strip():
            return f"Player {number} ({label}) needs a position"
        jersey = entry.jersey.strip()
        if not JERSEY_PATTERN.fullmatch(jersey):
            return f"Jersey number for {label} must be numeric"
        too_long = len(jersey.lstrip("0")) > len(str(MAX_JERSEY_NUMBER))
        value = MAX_JERSEY_NUMBER + 1 if too_long else int(jersey)
        if value > MAX_JERSEY_NUMBER:
            return f"Jersey number for {label} must be {MAX_JERSEY_NUMBER} or lower"
        if value in seen:
            return f"Jersey number {value} is used more than once"
        seen.add(value)
    return None


def _logo_error(draft: TeamDraft) -> str | None:
    logo = draft.logo
    if logo is None:
        return None
    if not (logo.content_type or "").lower().startswith("image/"):
        return "Only image uploads are allowed for the logo"
    if Path(logo.filename).suffix.lower() not in ALLOWED_LOGO_SUFFIXES:
        return "Use PNG, JPG, GIF, HEIC, or WebP images"
    if logo.size > MAX_LOGO_BYTES:
        return "Logos must be 5 MB or smaller"
    return None


def jersey_number(entry) -> int:
    """Jersey text as an integer; only safe on entries that passed validation."""
    return int(entry.jersey.strip())
