"""In-memory registration draft: team fields, optional logo and a bounded roster."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import zip_longest
from typing import Iterable, List

ROSTER_MAX_ENTRIES = 11
ENTRY_FIELDS = ("name", "jersey", "position")


@dataclass
class RosterEntry:
    name: str = ""
    jersey: str = ""
    position: str = ""

    @property
    def is_filled(self) -> bool:
        return bool(self.name.strip())


@dataclass
class LogoFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class RosterDraft:
    """Ordered roster entries whose length always stays within ``[1, max_entries]``.

    Adding past the maximum and removing the last entry are silent no-ops, so a
    form re-render can apply whatever button was pressed without checking first.
    """

    def __init__(self, entries: Iterable[RosterEntry] | None = None, *, max_entries: int = ROSTER_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("A roster must allow at least one entry.")
        self.max_entries = max_entries
        posted = list(entries or [])
        self.entries: List[RosterEntry] = posted[:max_entries]
        # Filled rows beyond the maximum, kept so validation can count them.
        self.overflow: List[RosterEntry] = [entry for entry in posted[max_entries:] if entry.is_filled]
        if not self.entries:
            self.entries.append(RosterEntry())

    @classmethod
    def from_form(
        cls,
        names: Iterable[str],
        jerseys: Iterable[str],
        positions: Iterable[str],
        *,
        max_entries: int = ROSTER_MAX_ENTRIES,
    ) -> "RosterDraft":
        """Rebuild a draft from the parallel field lists a form post carries."""
        entries = [
            RosterEntry(name=name or "", jersey=jersey or "", position=position or "")
            for name, jersey, position in zip_longest(names, jerseys, positions, fillvalue="")
        ]
        if len(entries) > max_entries:
            # Blank rows give way first when a post carries more than fit.
            entries = [entry for entry in entries if entry.is_filled]
        return cls(entries, max_entries=max_entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def is_full(self) -> bool:
        return len(self.entries) >= self.max_entries

    def add_entry(self) -> None:
        if self.is_full:
            return
        self.entries.append(RosterEntry())

    def remove_entry(self, index: int) -> None:
        if len(self.entries) == 1 or not 0 <= index < len(self.entries):
            return
        del self.entries[index]

    def update_entry(self, index: int, field_name: str, value: str) -> None:
        if field_name not in ENTRY_FIELDS:
            raise ValueError(f"Unknown roster field: {field_name}")
        setattr(self.entries[index], field_name, value)

    def filled_entries(self) -> List[RosterEntry]:
        return [entry for entry in self.entries if entry.is_filled]

    def reset(self) -> None:
        self.entries = [RosterEntry()]
        self.overflow = []


@dataclass
class TeamDraft:
    team_name: str = ""
    manager_name: str = ""
    manager_phone: str = ""
    logo: LogoFile | None = None
    roster: RosterDraft = field(default_factory=RosterDraft)

    def reset(self) -> None:
        """Return every field to the state of a freshly opened form."""
        self.team_name = ""
        self.manager_name = ""
        self.manager_phone = ""
        self.logo = None
        self.roster.reset()
