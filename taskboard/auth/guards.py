# taskboard/auth/guards.py
from __future__ import annotations
from functools import wraps
from typing import Optional
from flask import request, current_app, g

from .. import get_conn
from ..errors import PermissionDenied, Unauthenticated
from ..services.access import Caller
from ..services.auth import AuthService

# ---------- helpers ----------
def _bearer_token() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.lower().startswith("bearer "):
        return None
    return auth.split(None, 1)[1]

def current_caller() -> Optional[Caller]:
    """Resolve the request's caller, or None when there is no valid identity."""
    payload = AuthService.verify_token(_bearer_token(), current_app.config.get("JWT_SECRET"))
    if not payload:
        return None
    try:
        user_id = int(str(payload.get("sub")))
    except ValueError:
        return None
    # the token's role claim is only a hint; the stored role decides
    with get_conn() as conn:
        return AuthService.load_caller(conn, user_id)

# ---------- top-level auth ----------
def require_auth(fn):
    """Require a valid JWT for an existing user; exposes g.caller."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        caller = current_caller()
        if caller is None:
            raise Unauthenticated()
        g.caller = caller
        return fn(*args, **kwargs)
    return wrapper

def require_admin(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not g.caller.is_admin:
            raise PermissionDenied("insufficient_role")
        return fn(*args, **kwargs)
    return require_auth(wrapper)
