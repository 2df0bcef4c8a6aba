"""Team registration submission: validate, upload the logo, insert team and players."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum

from .backend import Backend
from .database import STATUS_PENDING, Player, Team
from .errors import StoreError
from .roster import TeamDraft
from .storage import logo_object_key, prepare_logo
from .validation import REQUIRED_PLAYER_COUNT, jersey_number, validate_draft

LOGO_BUCKET = os.getenv("LOGO_BUCKET", "team-logos")

SUCCESS_MESSAGE = "Registration successful!"
INVALID_MESSAGE = "Please fix the errors below"
FALLBACK_ERROR_MESSAGE = "Something went wrong"

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    IDLE_WITH_ERRORS = "idle_with_errors"
    UPLOADING = "uploading"
    INSERTING_TEAM = "inserting_team"
    INSERTING_PLAYERS = "inserting_players"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


BUSY_STATES = {SubmissionState.UPLOADING, SubmissionState.INSERTING_TEAM, SubmissionState.INSERTING_PLAYERS}


@dataclass(frozen=True)
class Notice:
    """A transient message shown once above the form."""

    message: str
    kind: str  # "success" or "error"


@dataclass
class SubmissionOutcome:
    state: SubmissionState
    errors: dict[str, str] = field(default_factory=dict)
    notice: Notice | None = None
    team: Team | None = None
    players: list[Player] = field(default_factory=list)
    logo_url: str = ""
    orphan_team_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is SubmissionState.SUCCEEDED


class RegistrationWorkflow:
    """Drives one submission through an explicit sequence of states.

    A failure after the team row exists triggers a delete of that row; if the
    delete fails as well the outcome reports ``orphan_team_id``.
    """

    def __init__(self, backend: Backend, *, required_players: int = REQUIRED_PLAYER_COUNT, bucket: str = LOGO_BUCKET):
        self.backend = backend
        self.required_players = required_players
        self.bucket = bucket
        self.state = SubmissionState.IDLE
        self.history: list[SubmissionState] = [SubmissionState.IDLE]

    @property
    def loading(self) -> bool:
        return self.state in BUSY_STATES

    def _enter(self, state: SubmissionState) -> None:
        self.state = state
        self.history.append(state)

    def _fail(self, exc: StoreError, **details) -> SubmissionOutcome:
        self._enter(SubmissionState.FAILED)
        message = exc.message or FALLBACK_ERROR_MESSAGE
        return SubmissionOutcome(state=self.state, notice=Notice(message, "error"), **details)

    def submit(self, draft: TeamDraft) -> SubmissionOutcome:
        self._enter(SubmissionState.VALIDATING)
        errors = validate_draft(draft, required_players=self.required_players)
        if errors:
            self._enter(SubmissionState.IDLE_WITH_ERRORS)
            return SubmissionOutcome(state=self.state, errors=errors, notice=Notice(INVALID_MESSAGE, "error"))

        logo_url = ""
        if draft.logo is not None:
            self._enter(SubmissionState.UPLOADING)
            try:
                logo_url = self._upload_logo(draft)
            except StoreError as exc:
                logger.warning("Logo upload for %s failed: %s", draft.team_name.strip(), exc.message)
                return self._fail(exc)

        self._enter(SubmissionState.INSERTING_TEAM)
        try:
            team = self.backend.store.insert(
                Team(
                    team_name=draft.team_name.strip(),
                    manager_name=draft.manager_name.strip(),
                    manager_phone=draft.manager_phone.strip(),
                    logo_url=logo_url,
                    status=STATUS_PENDING,
                )
            )
        except StoreError as exc:
            return self._fail(exc, logo_url=logo_url)

        self._enter(SubmissionState.INSERTING_PLAYERS)
        rows = [
            Player(
                team_id=team.id,
                player_name=entry.name.strip(),
                jersey_number=jersey_number(entry),
                position=entry.position.strip(),
            )
            for entry in draft.roster.filled_entries()
        ]
        try:
            players = self.backend.store.insert_many(rows) if rows else []
        except StoreError as exc:
            orphan_id = self._discard_team(team)
            return self._fail(exc, team=team, logo_url=logo_url, orphan_team_id=orphan_id)

        self._enter(SubmissionState.SUCCEEDED)
        logger.info("Registered team %s (%s) with %d players", team.team_name, team.id, len(players))
        draft.reset()
        return SubmissionOutcome(
            state=self.state,
            notice=Notice(SUCCESS_MESSAGE, "success"),
            team=team,
            players=players,
            logo_url=logo_url,
        )

    def _upload_logo(self, draft: TeamDraft) -> str:
        logo = prepare_logo(draft.logo)
        key = logo_object_key(logo.filename)
        self.backend.blobs.upload(self.bucket, key, logo.data, logo.content_type)
        return self.backend.blobs.get_public_url(self.bucket, key)

    def _discard_team(self, team: Team) -> str | None:
        """Delete a team whose players could not be saved; return its id if that fails too."""
        try:
            self.backend.store.delete(Team, team.id)
        except StoreError as exc:
            logger.warning("Team %s left without players; manual cleanup needed: %s", team.id, exc.message)
            return team.id
        return None
