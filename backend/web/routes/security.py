"""
Shared web security helpers for the route modules.

Contains the admin session check, the CSRF same-origin check for admin
writes and the private (no-store) JSON response helpers. Keeping a single
implementation avoids security drift between routers.
"""
from __future__ import annotations

import os
from urllib.parse import urlparse

from fastapi import Request
from fastapi.responses import JSONResponse

from backend.identity_access.tokens import AdminSession
from backend.web.auth_utils import is_prod_like, session_token_from_cookies
from backend.web.config import get_environment
from backend.web.storage_wiring import get_session_guard


def _json_private(payload, *, status_code: int = 200) -> JSONResponse:
    """Return a JSONResponse with cache disabled for shared caches and browsers."""
    return JSONResponse(content=payload, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def _private_error(payload: dict, *, status_code: int) -> JSONResponse:
    """Return error JSON with private, no-store cache headers."""
    return JSONResponse(content=payload, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def current_admin(request: Request) -> AdminSession | None:
    guard = get_session_guard()
    if guard is None:
        return None
    return guard.verify(session_token_from_cookies(request.cookies))


def _require_admin(request: Request):
    """Return (session, error_response); every failure is the same 401."""
    session = current_admin(request)
    if session is None:
        return None, _private_error({"error": "unauthorized"}, status_code=401)
    return session, None


def _parse_origin(url: str) -> tuple[str, str, int]:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    port = p.port if p.port is not None else (443 if scheme == "https" else 80)
    return scheme, p.hostname.lower(), int(port)


def _server_origin(request: Request) -> tuple[str, str, int]:
    """Origin the browser talked to; X-Forwarded-* only when KITCHEN_TRUST_PROXY=true."""
    trust_proxy = (os.getenv("KITCHEN_TRUST_PROXY", "false") or "").lower() == "true"
    scheme = (request.url.scheme or "http").lower()
    host = (request.url.hostname or "").lower()
    port = int(request.url.port) if request.url.port else None
    if trust_proxy:
        xf_proto = (request.headers.get("x-forwarded-proto") or "").split(",")[0].strip()
        xf_host = (request.headers.get("x-forwarded-host") or "").split(",")[0].strip()
        if xf_proto:
            scheme = xf_proto.lower()
        if xf_host:
            if ":" in xf_host:
                host_only, port_str = xf_host.rsplit(":", 1)
                host = host_only.lower()
                port = int(port_str) if port_str.isdigit() else None
            else:
                host = xf_host.lower()
                port = None
    if port is None:
        port = 443 if scheme == "https" else 80
    return scheme, host, port


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow, so non-browser clients keep working.
    """
    header = request.headers.get("origin") or request.headers.get("referer")
    if not header:
        return True
    try:
        return _parse_origin(header) == _server_origin(request)
    except ValueError:
        return False


def _csrf_guard(request: Request) -> JSONResponse | None:
    """Enforce same-origin for browser write requests.

    Behavior:
        - In prod-like environments or when STRICT_CSRF_ADMIN=true, require
          that Origin or Referer is present AND same-origin.
        - Otherwise fall back to `_is_same_origin`, which permits requests
          without these headers (scripts, tests).
    """
    strict_toggle = (os.getenv("STRICT_CSRF_ADMIN", "false") or "").lower() == "true"
    strict = is_prod_like(get_environment()) or strict_toggle
    if strict and not (request.headers.get("origin") or request.headers.get("referer")):
        return _private_error({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    if not _is_same_origin(request):
        return _private_error({"error": "forbidden", "detail": "csrf_violation"}, status_code=403)
    return None
