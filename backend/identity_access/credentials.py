"""
Single shared admin credential.

The site has exactly one admin identity configured through the environment;
there are no roles and no user store.
"""
from __future__ import annotations

from dataclasses import dataclass
import hmac
import logging
import os

from .tokens import DEFAULT_TTL_SECONDS

_log = logging.getLogger("kitchen.identity")

_REQUIRED_ADMIN_VARS = ("ADMIN_USERNAME", "ADMIN_PASSWORD", "ADMIN_JWT_SECRET")


@dataclass(frozen=True)
class AdminConfig:
    username: str
    password: str
    jwt_secret: str
    session_ttl_seconds: int = DEFAULT_TTL_SECONDS

    def __repr__(self) -> str:  # never print secrets
        return f"AdminConfig(username={self.username!r}, session_ttl_seconds={self.session_ttl_seconds})"

    def check(self, username: str, password: str) -> bool:
        """Constant-time comparison of both fields."""
        user_ok = hmac.compare_digest(username.encode("utf-8"), self.username.encode("utf-8"))
        pass_ok = hmac.compare_digest(password.encode("utf-8"), self.password.encode("utf-8"))
        return user_ok and pass_ok


def _ttl_from_env() -> int:
    raw = (os.getenv("ADMIN_SESSION_TTL_SECONDS") or "").strip()
    if not raw:
        return DEFAULT_TTL_SECONDS
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_TTL_SECONDS
    return value if value > 0 else DEFAULT_TTL_SECONDS


def load_admin_config() -> AdminConfig | None:
    """Return the admin credential, or None when any required variable is missing."""
    values = {name: (os.getenv(name) or "").strip() for name in _REQUIRED_ADMIN_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        if len(missing) < len(_REQUIRED_ADMIN_VARS):
            _log.warning("Admin login partially configured; missing: %s", ", ".join(missing))
        return None
    return AdminConfig(
        username=values["ADMIN_USERNAME"],
        password=values["ADMIN_PASSWORD"],
        jwt_secret=values["ADMIN_JWT_SECRET"],
        session_ttl_seconds=_ttl_from_env(),
    )


__all__ = ["AdminConfig", "load_admin_config"]
