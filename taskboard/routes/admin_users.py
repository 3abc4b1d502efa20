# taskboard/routes/admin_users.py
from flask import Blueprint, request, jsonify, current_app, g

from .. import get_conn
from ..auth.guards import require_admin
from ..services.auth import AuthService

admin_users_bp = Blueprint("admin_users", __name__)

@admin_users_bp.post("/admin/users")
@require_admin
def create_user():
    """
    POST /api/admin/users: create a user.
    Body: { name, email, password, role? }   role: MEMBER (default) | ADMIN
    Returns:
      201 { user }
      400 { error: bad_request }
      401 { error: unauthorized }
      403 { error: forbidden }
      409 { error: email_exists }
    """
    data = request.get_json(silent=True) or {}
    with get_conn() as conn, conn.begin():
        user = AuthService.create_user(conn, data)
    current_app.logger.info("user %s created by admin %s", user["email"], g.caller.id)
    return jsonify({"user": user}), 201
