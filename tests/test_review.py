from datetime import datetime, timedelta, timezone

import pytest

from registration.backend import Backend
from registration.database import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, Player, Team
from registration.errors import StoreError
from registration.review import TeamReview
from registration.store import SqlDataStore


class FlakyStore(SqlDataStore):
    """Fails queries on the tables listed in ``broken``."""

    def __init__(self, engine):
        super().__init__(engine)
        self.broken: set[type] = set()

    def query(self, model, *args, **kwargs):
        if model in self.broken:
            raise StoreError("connection reset by peer")
        return super().query(model, *args, **kwargs)


def _seed(store: SqlDataStore) -> list[Team]:
    start = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
    teams = [
        Team(team_name=name, manager_name="Manager", manager_phone="9876543210", created_at=start + timedelta(hours=offset))
        for offset, name in enumerate(["Early Birds", "Midday FC", "Late Comers"])
    ]
    store.insert_many(teams)
    return teams


def test_load_teams_orders_newest_first(backend):
    _seed(backend.store)
    review = TeamReview(backend)
    names = [team.team_name for team in review.load_teams()]
    assert names == ["Late Comers", "Midday FC", "Early Birds"]
    assert review.teams[0].status == STATUS_PENDING


def test_set_status_updates_and_refreshes(backend):
    teams = _seed(backend.store)
    review = TeamReview(backend)
    review.load_teams()

    refreshed = review.set_status(teams[1].id, STATUS_APPROVED)

    statuses = {team.id: team.status for team in refreshed}
    assert statuses[teams[1].id] == STATUS_APPROVED
    assert statuses[teams[0].id] == STATUS_PENDING
    reloaded = {team.id: team.status for team in review.load_teams()}
    assert reloaded[teams[1].id] == STATUS_APPROVED


def test_set_status_then_reject(backend):
    [team, *_] = _seed(backend.store)
    review = TeamReview(backend)
    review.set_status(team.id, STATUS_APPROVED)
    review.set_status(team.id, STATUS_REJECTED)
    assert {row.id: row.status for row in review.load_teams()}[team.id] == STATUS_REJECTED


@pytest.mark.parametrize("status", ["pending", "archived", ""])
def test_set_status_rejects_other_values(backend, status):
    [team, *_] = _seed(backend.store)
    with pytest.raises(ValueError):
        TeamReview(backend).set_status(team.id, status)


def test_set_status_on_unknown_team_raises_store_error(backend):
    with pytest.raises(StoreError):
        TeamReview(backend).set_status("missing", STATUS_APPROVED)


def test_failed_refresh_keeps_previous_list(engine, backend):
    store = FlakyStore(engine)
    _seed(store)
    review = TeamReview(Backend(auth=backend.auth, store=store, blobs=backend.blobs))
    before = review.load_teams()

    store.broken.add(Team)
    assert review.load_teams() is before
    assert len(review.teams) == 3


def test_team_detail_lists_players_by_jersey(backend):
    [team, *_] = _seed(backend.store)
    backend.store.insert_many(
        [
            Player(team_id=team.id, player_name="Keeper", jersey_number=1, position="Goalkeeper"),
            Player(team_id=team.id, player_name="Striker", jersey_number=9, position="Forward"),
            Player(team_id=team.id, player_name="Captain", jersey_number=4, position="Defender"),
        ]
    )

    detail = TeamReview(backend).load_team_detail(team.id)

    assert detail.team.id == team.id
    assert [player.jersey_number for player in detail.players] == [1, 4, 9]


def test_team_detail_for_unknown_team_is_empty(backend):
    assert TeamReview(backend).load_team_detail("t-123") is None


def test_team_detail_needs_both_lookups(engine, backend):
    store = FlakyStore(engine)
    [team, *_] = _seed(store)
    store.broken.add(Player)
    review = TeamReview(Backend(auth=backend.auth, store=store, blobs=backend.blobs))
    assert review.load_team_detail(team.id) is None


def test_status_counts(backend):
    teams = _seed(backend.store)
    review = TeamReview(backend)
    review.set_status(teams[0].id, STATUS_APPROVED)
    review.set_status(teams[2].id, STATUS_REJECTED)
    assert review.status_counts() == {STATUS_PENDING: 1, STATUS_APPROVED: 1, STATUS_REJECTED: 1}
