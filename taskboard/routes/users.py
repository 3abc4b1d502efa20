# taskboard/routes/users.py
from flask import Blueprint, jsonify

from .. import get_conn
from ..auth.guards import require_auth
from ..services.auth import AuthService

users_bp = Blueprint("users", __name__)

@users_bp.get("/users")
@require_auth
def list_users():
    """GET /api/users: directory used by member and assignee pickers."""
    with get_conn() as conn:
        return jsonify(AuthService.get_all_users(conn)), 200
