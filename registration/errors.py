"""Failures raised by the backend service adapters."""

from __future__ import annotations


class BackendError(Exception):
    """Base class for errors reported by the auth, data or blob services."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreError(BackendError):
    """A data store or blob storage call failed."""


class AuthError(BackendError):
    """Sign-in was refused by the auth service."""
