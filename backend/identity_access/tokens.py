"""
Admin session tokens for the identity_access bounded context.

Why: Keep signing and verification of the admin session outside the web
adapter so it can be unit tested with a fixed clock.

Security:
- HS256 with a server-side secret; the token binds a single `username`
  claim plus `iat`/`exp`.
- `verify` collapses every failure (bad signature, expired, malformed,
  wrong algorithm) into `None`. Callers never learn the reason.
- Expiry is checked here against an injectable clock instead of inside
  python-jose, so tests can step over the boundary deterministically.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional
import logging
import time

from jose import jwt
from jose.exceptions import JOSEError

_log = logging.getLogger("kitchen.identity")

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 12 * 60 * 60
MAX_CLOCK_SKEW_SECONDS = 5  # Tolerated only for `iat` drift between servers


@dataclass(frozen=True)
class AdminSession:
    username: str
    issued_at: int
    expires_at: int


class SessionGuard:
    """Issue and verify signed admin session tokens."""

    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("session_secret_missing")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, username: str) -> str:
        now = int(self._clock())
        claims = {"username": username, "iat": now, "exp": now + self.ttl_seconds}
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str | None) -> Optional[AdminSession]:
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_aud": False,
                },
            )
        except JOSEError:
            _log.debug("session token rejected")
            return None
        return self._validate_claims(claims)

    def _validate_claims(self, claims: Dict[str, object]) -> Optional[AdminSession]:
        now = self._clock()
        username = claims.get("username")
        if not isinstance(username, str) or not username:
            return None
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or exp <= now:
            return None
        iat = claims.get("iat")
        if isinstance(iat, (int, float)) and iat - MAX_CLOCK_SKEW_SECONDS > now:
            return None
        return AdminSession(
            username=username,
            issued_at=int(iat) if isinstance(iat, (int, float)) else 0,
            expires_at=int(exp),
        )


__all__ = ["SessionGuard", "AdminSession", "ALGORITHM", "DEFAULT_TTL_SECONDS"]
