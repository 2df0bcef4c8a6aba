"""Admin sign-in and signed session tokens."""

from __future__ import annotations

import hmac
import logging
import os
import secrets
import time
from dataclasses import dataclass

from .errors import AuthError

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "change-me")
SESSION_SECRET = os.getenv("ADMIN_SESSION_SECRET") or os.getenv("SECRET_KEY") or secrets.token_hex(32)
SESSION_MAX_AGE = int(os.getenv("ADMIN_SESSION_MAX_AGE", "43200"))  # 12 hours default

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminSession:
    email: str
    token: str
    issued_at: int


class AdminAuth:
    """Credential check against the configured admin account.

    Tokens have the form ``email|nonce|issued_at|signature`` and are verified
    statelessly, except for tokens revoked by :meth:`sign_out`, which are
    remembered for the life of the process.
    """

    def __init__(
        self,
        email: str = ADMIN_EMAIL,
        password: str = ADMIN_PASSWORD,
        *,
        secret: str = SESSION_SECRET,
        max_age: int = SESSION_MAX_AGE,
    ) -> None:
        self._email = email
        self._password = password
        self._secret = secret.encode("utf-8")
        self.max_age = max_age
        self._revoked: dict[str, int] = {}

    def _sign_payload(self, payload: str) -> str:
        return hmac.new(self._secret, payload.encode("utf-8"), "sha256").hexdigest()

    def _encode_session(self, email: str, issued_at: int) -> str:
        payload = f"{email}|{secrets.token_hex(16)}|{issued_at}"
        return f"{payload}|{self._sign_payload(payload)}"

    def sign_in_with_password(self, email: str, password: str) -> AdminSession:
        email = email.strip()
        email_ok = hmac.compare_digest(email.lower().encode("utf-8"), self._email.lower().encode("utf-8"))
        password_ok = hmac.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        if not (email_ok and password_ok):
            logger.warning("Rejected admin sign-in for %s", email or "<blank>")
            raise AuthError("Invalid login credentials")
        issued_at = int(time.time())
        return AdminSession(email=self._email, token=self._encode_session(self._email, issued_at), issued_at=issued_at)

    def get_session(self, token: str | None) -> AdminSession | None:
        if not token or token in self._revoked:
            return None
        try:
            email, nonce, timestamp, signature = token.split("|")
        except ValueError:
            return None
        expected = self._sign_payload(f"{email}|{nonce}|{timestamp}")
        if not hmac.compare_digest(expected, signature):
            return None
        try:
            issued_at = int(timestamp)
        except ValueError:
            return None
        if int(time.time()) - issued_at > self.max_age:
            return None
        return AdminSession(email=email, token=token, issued_at=issued_at)

    def get_user(self, token: str | None) -> str | None:
        session = self.get_session(token)
        return session.email if session else None

    def sign_out(self, token: str | None) -> None:
        session = self.get_session(token)
        if session:
            self._revoked[session.token] = session.issued_at
        self._prune_revoked()

    def _prune_revoked(self) -> None:
        # Expired tokens fail the age check anyway, so they need no entry.
        cutoff = int(time.time()) - self.max_age
        for token, issued_at in list(self._revoked.items()):
            if issued_at < cutoff:
                del self._revoked[token]
