# taskboard/routes/auth.py
from flask import Blueprint, request, jsonify, current_app, g

from .. import get_conn
from ..auth.guards import require_auth
from ..errors import NotFound, Unauthenticated, ValidationError
from ..services.auth import AuthService, _norm_email

auth_bp = Blueprint("auth", __name__)

@auth_bp.post("/auth/login")
def login():
    """
    POST /api/auth/login
    Body: { "email": str, "password": str }
    Returns: 200 { "access_token": <jwt>, "user": { id, email, name, role } }
             400 on missing fields, 401 on bad credentials
    """
    data = request.get_json(silent=True) or {}
    email = _norm_email(data.get("email"))
    password = data.get("password") or ""
    if not email or not password:
        raise ValidationError("email and password required")

    with get_conn() as conn:
        user = AuthService.authenticate_user(conn, email, password)
    if not user:
        current_app.logger.info("failed login for %s", email)
        raise Unauthenticated("invalid_credentials")

    token = AuthService.generate_token(
        user,
        current_app.config["JWT_SECRET"],
        int(current_app.config.get("JWT_EXPIRES_HOURS", 24)),
    )
    return jsonify({"access_token": token, "user": user}), 200

@auth_bp.get("/auth/me")
@require_auth
def me():
    with get_conn() as conn:
        user = AuthService.get_user_by_id(conn, g.caller.id)
    if not user:
        raise NotFound("user not found")
    return jsonify({"user": user}), 200
