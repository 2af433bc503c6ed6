"""
FastAPI application for the kitchen content site.

Serves the public read API, the admin write API, login/logout and the image
proxy. Rendering of pages and forms happens in a separate frontend that
consumes these endpoints.
"""
from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI, Request

from backend.storage.config import get_public_host
from backend.web import config as _cfg
from backend.web.auth_utils import is_prod_like
from backend.web.routes.admin import admin_router
from backend.web.routes.auth import auth_router
from backend.web.routes.public import public_router


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via KITCHEN_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("KITCHEN_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

logger = logging.getLogger("kitchen.web")

app = FastAPI(title="Kitchen Notes", description="Recipes, blog and holiday kitchen content API", version="0.1.0")

app.include_router(public_router)
app.include_router(auth_router)
app.include_router(admin_router)


# --- Security Headers Middleware ----------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    # Images may come from the public bucket host as well as from the proxy.
    img_src = "'self' data:"
    public_host = get_public_host()
    if public_host:
        img_src += f" {public_host}"
    response.headers.setdefault(
        "Content-Security-Policy",
        f"default-src 'self'; img-src {img_src}; frame-ancestors 'self'",
    )
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    # Support Origin/Referer fallback in CSRF checks without leaking cross-site paths.
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if is_prod_like(_cfg.get_environment()):
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response
