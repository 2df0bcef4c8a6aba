"""Database models and helpers for team and roster storage."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.engine import Engine
from sqlmodel import Field, SQLModel, create_engine

DEFAULT_SQLITE_PATH = "sqlite:///./registration.db"

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
TEAM_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)


def _build_engine_url() -> str:
    """Return the configured database URL or fall back to SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_SQLITE_PATH)


def build_engine(url: str | None = None) -> Engine:
    url = url or _build_engine_url()
    engine_kwargs = {}
    if url.startswith("sqlite"):
        # SQLite needs check_same_thread disabled for FastAPI concurrency,
        # but passing this flag to other drivers (e.g., psycopg2) raises errors.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **engine_kwargs)


engine = build_engine()


def _new_identifier() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Team(SQLModel, table=True):
    id: str = Field(default_factory=_new_identifier, primary_key=True)
    team_name: str = Field(nullable=False, max_length=128)
    manager_name: str = Field(nullable=False, max_length=128)
    manager_phone: str = Field(nullable=False, max_length=10)
    logo_url: str = Field(default="", nullable=False)
    status: str = Field(default=STATUS_PENDING, nullable=False, index=True)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False, index=True)


class Player(SQLModel, table=True):
    id: str = Field(default_factory=_new_identifier, primary_key=True)
    team_id: str = Field(foreign_key="team.id", nullable=False, index=True)
    player_name: str = Field(nullable=False, max_length=128)
    jersey_number: int = Field(nullable=False, ge=0)
    position: str = Field(nullable=False, max_length=64)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


def init_db(target: Engine | None = None) -> None:
    """Create tables if they don't already exist."""
    SQLModel.metadata.create_all(target or engine)
