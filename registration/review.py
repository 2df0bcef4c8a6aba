"""Admin review of submitted teams."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .backend import Backend
from .database import STATUS_APPROVED, STATUS_REJECTED, TEAM_STATUSES, Player, Team
from .errors import StoreError

REVIEW_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

logger = logging.getLogger(__name__)


@dataclass
class TeamDetail:
    team: Team
    players: list[Player]


class TeamReview:
    """Holds the dashboard's team list and refetches it after every change."""

    def __init__(self, backend: Backend) -> None:
        self.backend = backend
        self.teams: list[Team] = []

    def load_teams(self) -> list[Team]:
        try:
            rows = self.backend.store.query(Team, order_by="created_at", descending=True)
        except StoreError as exc:
            logger.warning("Refreshing the team list failed: %s", exc.message)
            return self.teams
        self.teams = rows
        return self.teams

    def set_status(self, team_id: str, status: str) -> list[Team]:
        if status not in REVIEW_STATUSES:
            raise ValueError(f"Unsupported team status: {status}")
        self.backend.store.update(Team, team_id, {"status": status})
        logger.info("Team %s marked %s", team_id, status)
        return self.load_teams()

    def load_team_detail(self, team_id: str) -> TeamDetail | None:
        try:
            team = self.backend.store.get(Team, team_id)
            if team is None:
                return None
            players = self.backend.store.query(Player, {"team_id": team_id}, order_by="jersey_number")
        except StoreError as exc:
            logger.warning("Loading team %s failed: %s", team_id, exc.message)
            return None
        return TeamDetail(team=team, players=players)

    def status_counts(self) -> dict[str, int]:
        counts = {status: 0 for status in TEAM_STATUSES}
        for team in self.teams:
            counts[team.status] = counts.get(team.status, 0) + 1
        return counts
