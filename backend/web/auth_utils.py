"""
Shared authentication utilities.

Why:
    Avoid duplicating environment-dependent cookie policy logic across modules
    (main app, auth router, admin router). Keeping a single helper keeps the
    cookie contract in one place.

Design:
    The helpers are framework-agnostic and pure: they accept an environment
    string and return cookie flags or a ready `Set-Cookie` value. Callers
    decide where the environment comes from.

Cookie contract:
    `admin_auth=<token>; Path=/; HttpOnly; SameSite=Lax` plus `Secure`
    only in prod-like environments (local dev runs over plain http).
"""

from __future__ import annotations

from typing import Mapping, Optional

SESSION_COOKIE_NAME = "admin_auth"


def is_prod_like(environment: str) -> bool:
    return (environment or "").strip().lower() in {"prod", "production", "stage", "staging"}


def cookie_opts(environment: str) -> dict:
    """Return the session cookie flags for `environment`.

    Returns a mapping with keys:
      - secure: True only in prod-like environments
      - samesite: "lax"  # Cookie still travels on top-level navigations
      - httponly: True
      - path: "/"
    """
    return {"secure": is_prod_like(environment), "samesite": "lax", "httponly": True, "path": "/"}


def _format_cookie(value: str, environment: str, max_age: int | None) -> str:
    opts = cookie_opts(environment)
    parts = [f"{SESSION_COOKIE_NAME}={value}", f"Path={opts['path']}"]
    if max_age is not None:
        parts.append(f"Max-Age={int(max_age)}")
    if opts["httponly"]:
        parts.append("HttpOnly")
    parts.append(f"SameSite={opts['samesite'].capitalize()}")
    if opts["secure"]:
        parts.append("Secure")
    return "; ".join(parts)


def session_cookie_header(token: str, environment: str, max_age: int | None = None) -> str:
    """Build the `Set-Cookie` value that installs the session token."""
    return _format_cookie(token, environment, max_age)


def revoke_cookie_header(environment: str) -> str:
    """Build the `Set-Cookie` value that clears the session (already expired, empty)."""
    return _format_cookie("", environment, 0)


def session_token_from_cookies(cookies: Mapping[str, str]) -> Optional[str]:
    token = (cookies.get(SESSION_COOKIE_NAME) or "").strip()
    return token or None
