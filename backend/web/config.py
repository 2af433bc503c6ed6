"""
Configuration and startup security checks for the kitchen site.

Why: A public site with an admin login must not be deployed with a guessable
signing secret, a placeholder password or plain-http asset hosts. This module
provides a single guard that enforces minimal production safety constraints
without burdening local development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os

from .auth_utils import is_prod_like

MIN_JWT_SECRET_LENGTH = 32
_PLACEHOLDER_PASSWORDS = {"admin", "password", "changeme", "change_me", "secret"}


def get_environment() -> str:
    return (os.getenv("KITCHEN_ENV") or "dev").strip().lower()


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - ADMIN_JWT_SECRET must be set and at least 32 characters long.
    - ADMIN_PASSWORD must not be a known placeholder.
    - R2_ENDPOINT and R2_PUBLIC_HOST must not use plain http.
    """
    env = get_environment()
    if not is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Session signing secret
    secret = (os.getenv("ADMIN_JWT_SECRET") or "").strip()
    if len(secret) < MIN_JWT_SECRET_LENGTH:
        raise SystemExit(
            "Refusing to start: ADMIN_JWT_SECRET is unset or shorter than 32 characters in production."
        )

    # 2) Admin password placeholders
    password = (os.getenv("ADMIN_PASSWORD") or "").strip()
    if password.lower() in _PLACEHOLDER_PASSWORDS or password.upper().startswith("CHANGE_ME"):
        raise SystemExit("Refusing to start: ADMIN_PASSWORD is a placeholder in production.")

    # 3) Store and asset hosts must use HTTPS in production-like environments
    def _must_be_https(url_value: str, var_name: str) -> None:
        if url_value.strip().lower().startswith("http://"):
            raise SystemExit(f"Refusing to start: {var_name} must use https in production (got http).")

    _must_be_https(os.getenv("R2_ENDPOINT", ""), "R2_ENDPOINT")
    _must_be_https(os.getenv("R2_PUBLIC_HOST", ""), "R2_PUBLIC_HOST")
