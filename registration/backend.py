"""Process-wide handle to the auth, data and blob services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .auth import AdminAuth
from .database import engine
from .storage import build_blob_storage
from .store import SqlDataStore


class BlobStorage(Protocol):
    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None: ...

    def get_public_url(self, bucket: str, key: str) -> str: ...


@dataclass
class Backend:
    auth: AdminAuth
    store: SqlDataStore
    blobs: BlobStorage


_backend: Backend | None = None


def build_backend() -> Backend:
    return Backend(auth=AdminAuth(), store=SqlDataStore(engine), blobs=build_blob_storage())


def get_backend() -> Backend:
    """Return the shared backend, constructing it on first use.

    Routes receive it through ``Depends(get_backend)``; tests replace it with
    ``app.dependency_overrides[get_backend]``.
    """
    global _backend
    if _backend is None:
        _backend = build_backend()
    return _backend
