"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep login/logout in a dedicated router; the session contract itself
    (token format, cookie flags) lives in identity_access and auth_utils.

Notes:
    - There is a single shared admin credential. Failed logins are logged
      with the submitted username only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from backend.web.auth_utils import revoke_cookie_header, session_cookie_header
from backend.web.config import get_environment
from backend.web.storage_wiring import get_admin_config, get_session_guard

from .security import _json_private, _private_error

auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix
logger = logging.getLogger("kitchen.web.auth")

LOGIN_PAGE_PATH = "/admin/login"


class LoginPayload(BaseModel):
    username: str = Field(default="", max_length=256)
    password: str = Field(default="", max_length=1024)


@auth_router.post("/api/auth/login")
async def login(payload: LoginPayload):
    """Exchange the admin credential for a session cookie.

    Behavior:
        - 200 `{ok: true}` with `Set-Cookie: admin_auth=...` on success
        - 401 on wrong username or password
        - 500 when no admin credential is configured
    """
    admin = get_admin_config()
    guard = get_session_guard()
    if admin is None or guard is None:
        return _private_error({"error": "server_error", "detail": "admin_not_configured"}, status_code=500)
    if not admin.check(payload.username, payload.password):
        logger.warning("admin login failed username=%s", payload.username[:64])
        return _private_error({"error": "unauthorized", "detail": "invalid_credentials"}, status_code=401)
    token = guard.issue(admin.username)
    response = _json_private({"ok": True})
    response.headers["Set-Cookie"] = session_cookie_header(token, get_environment(), max_age=guard.ttl_seconds)
    logger.info("admin login ok username=%s", admin.username)
    return response


@auth_router.api_route("/api/auth/logout", methods=["GET", "POST"])
async def logout():
    """Clear the session cookie and send the browser back to the login page."""
    response = RedirectResponse(url=LOGIN_PAGE_PATH, status_code=302)
    response.headers["Set-Cookie"] = revoke_cookie_header(get_environment())
    response.headers["Cache-Control"] = "private, no-store"
    return response
