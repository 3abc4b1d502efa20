# taskboard/routes/dashboard.py
from flask import Blueprint, jsonify, g

from .. import get_conn
from ..auth.guards import require_auth
from ..services.dashboard import build_dashboard

dashboard_bp = Blueprint("dashboard", __name__)

@dashboard_bp.get("/dashboard")
@require_auth
def dashboard():
    with get_conn() as conn:
        return jsonify(build_dashboard(conn, g.caller)), 200
