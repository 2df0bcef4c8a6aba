import os
import tempfile
from pathlib import Path

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

TEST_DB = Path(tempfile.gettempdir()) / "team_registration_test_app.sqlite3"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
os.environ["ADMIN_COOKIE_SECURE"] = "false"

from registration.auth import AdminAuth  # noqa: E402
from registration.backend import Backend  # noqa: E402
from registration.errors import StoreError  # noqa: E402
from registration.roster import RosterDraft, RosterEntry, TeamDraft  # noqa: E402
from registration.store import SqlDataStore  # noqa: E402

ADMIN_EMAIL = "admin@club.test"
ADMIN_PASSWORD = "kick-off-2025"


class RecordingBlobStorage:
    """Keeps uploads in memory and hands out predictable public URLs."""

    def __init__(self):
        self.uploads: list[tuple[str, str, bytes, str]] = []
        self.on_upload = None

    def upload(self, bucket, key, data, content_type):
        if self.on_upload:
            self.on_upload()
        self.uploads.append((bucket, key, data, content_type))

    def get_public_url(self, bucket, key):
        return f"https://cdn.example.test/{bucket}/{key}"


class FailingBlobStorage(RecordingBlobStorage):
    def upload(self, bucket, key, data, content_type):
        raise StoreError("Bucket not found")


def build_test_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


def make_draft(player_count: int = 11, **overrides) -> TeamDraft:
    entries = [
        RosterEntry(name=f"Player {index}", jersey=str(index), position="Midfielder")
        for index in range(1, player_count + 1)
    ]
    fields = {
        "team_name": "Harbour United",
        "manager_name": "Sam Rivera",
        "manager_phone": "9876543210",
        "roster": RosterDraft(entries, max_entries=max(player_count, 1)),
    }
    fields.update(overrides)
    return TeamDraft(**fields)


@pytest.fixture
def engine():
    engine = build_test_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def blobs():
    return RecordingBlobStorage()


@pytest.fixture
def backend(engine, blobs):
    return Backend(
        auth=AdminAuth(ADMIN_EMAIL, ADMIN_PASSWORD, secret="test-secret"),
        store=SqlDataStore(engine),
        blobs=blobs,
    )
